"""git log provider."""

import subprocess
from pathlib import Path

from relnotes.models import Commit
from relnotes.providers.base import SourceControl

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

# revision, full hash, author date (ISO 8601), author name, author email, subject, body
LOG_FORMAT = _FIELD_SEP.join(["%h", "%H", "%aI", "%an", "%ae", "%s", "%b"]) + _RECORD_SEP


def _rev_range(range_from: str, range_to: str) -> str:
    to = range_to or "HEAD"
    return f"{range_from}..{to}" if range_from else to


def parse_log(output: str) -> list[Commit]:
    """Parse `git log --format=LOG_FORMAT` output into commits, keeping git's order."""
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        revision, full_hash, date, author_name, author_email, summary, body = record.split(_FIELD_SEP, 6)
        commits.append(
            Commit(
                revision=revision,
                full_hash=full_hash,
                date=date,
                author_name=author_name,
                author_email=author_email,
                summary=summary,
                body=body.strip(),
            )
        )
    return commits


class GitSource(SourceControl):
    def __init__(self, repo_path: Path) -> None:
        self._repo_path = repo_path

    def get_commit_logs(self, range_from: str, range_to: str) -> list[Commit]:
        result = subprocess.run(
            ["git", "log", f"--format={LOG_FORMAT}", _rev_range(range_from, range_to)],
            capture_output=True,
            text=True,
            cwd=self._repo_path,
        )
        if result.returncode != 0:
            raise RuntimeError(f"git log failed: {result.stderr.strip()}")
        return parse_log(result.stdout)
