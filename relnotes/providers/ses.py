"""AWS SES mail provider."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from relnotes.providers.base import Mailer
from relnotes.settings import RelnotesSettings


class SesMailer(Mailer):
    def __init__(self, settings: RelnotesSettings) -> None:
        if not (settings.aws_access_key and settings.aws_access_secret):
            raise RuntimeError("aws_access_key and aws_access_secret are required to send email")
        if not settings.email_from:
            raise RuntimeError("email_from is required to send email")
        self._source = settings.email_from
        self._client = boto3.client(
            "ses",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key.get_secret_value(),
            aws_secret_access_key=settings.aws_access_secret.get_secret_value(),
        )

    def send(self, recipients: list[str], subject: str, html: str) -> str:
        try:
            response = self._client.send_email(
                Source=self._source,
                Destination={"ToAddresses": recipients},
                Message={
                    "Subject": {"Charset": "UTF-8", "Data": subject},
                    "Body": {"Html": {"Charset": "UTF-8", "Data": html}},
                },
            )
        except (ClientError, BotoCoreError) as exc:
            raise RuntimeError(f"SES send_email failed: {exc}") from exc
        return response["MessageId"]
