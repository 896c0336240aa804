"""
File upload hand-off for poster and archive calls.

The service does not accept file bytes directly. A signed handshake call
returns temporary S3 credentials and an object key; the file is written to
S3 under those credentials and the returned identifiers are then passed to
the poster/archive call.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .constants import PARAM_TMP_FILE_ID, PARAM_TMP_FILE_NAME, ROUTE_S3_HANDSHAKE
from .exceptions import StorageError, UploadError

logger = logging.getLogger(__name__)

HANDSHAKE_FIELDS = ('id', 'key', 'bucket', 'access_key', 'secret', 'token')


@dataclass(frozen=True)
class UploadTicket:
    """Temporary storage credentials, valid for a single upload."""
    file_id: str
    key: str
    bucket: str
    access_key: str
    secret: str
    token: str
    region: Optional[str] = None

    @classmethod
    def from_handshake(cls, response: Any) -> 'UploadTicket':
        """
        Build a ticket from the handshake response.

        Raises:
            UploadError: If the response does not carry the credentials
        """
        if not isinstance(response, Mapping) or any(response.get(f) is None for f in HANDSHAKE_FIELDS):
            message = "Could not initiate file upload"
            errors = response.get('errors') if isinstance(response, Mapping) else None
            if errors:
                message = f"{message}: {errors}"
            raise UploadError(message)

        return cls(
            file_id=str(response['id']),
            key=str(response['key']),
            bucket=str(response['bucket']),
            access_key=str(response['access_key']),
            secret=str(response['secret']),
            token=str(response['token']),
            region=response.get('region'),
        )

    def as_params(self) -> Dict[str, str]:
        """Parameters to merge into the call that follows the upload."""
        return {
            PARAM_TMP_FILE_ID: self.file_id,
            PARAM_TMP_FILE_NAME: self.key,
        }


def upload_basename(file_path: str) -> str:
    """Base name of a local path, accepting both separator styles."""
    return os.path.basename(str(file_path).replace('\\', '/'))


class UploadHandshakeClient:
    """
    Performs the handshake with the service and the upload to S3.

    Args:
        client: VolarClient used to send the signed handshake request
    """

    def __init__(self, client):
        self.client = client

    def handshake(self, filename: str) -> UploadTicket:
        """Request temporary credentials for ``filename``."""
        response = self.client.request(ROUTE_S3_HANDSHAKE, 'GET', {'filename': filename})
        return UploadTicket.from_handshake(response)

    def prepare_upload(self, file_path: str) -> Dict[str, str]:
        """
        Upload a local file and return the parameters identifying it.

        Args:
            file_path: Path of the local file

        Returns:
            Mapping with 'tmp_file_id' and 'tmp_file_name'

        Raises:
            UploadError: If the file does not exist or the handshake is rejected
            StorageError: If S3 rejects the upload
            TransportError: If the handshake request fails
            ResponseParseError: If the handshake response is not JSON
        """
        if not os.path.isfile(file_path):
            raise UploadError(f"{file_path} does not appear to exist")

        filename = upload_basename(file_path)
        ticket = self.handshake(filename)
        self.upload(ticket, file_path, filename)
        return ticket.as_params()

    def upload(self, ticket: UploadTicket, file_path: str, filename: Optional[str] = None):
        """
        Write the file to S3 under the ticket's temporary credentials.

        Raises:
            StorageError: If the credentials or the write are rejected
        """
        filename = filename or upload_basename(file_path)
        disposition = 'attachment; filename="%s"' % filename.replace('"', '')

        try:
            s3 = boto3.client(
                's3',
                aws_access_key_id=ticket.access_key,
                aws_secret_access_key=ticket.secret,
                aws_session_token=ticket.token,
                region_name=ticket.region,
            )
            with open(file_path, 'rb') as fh:
                s3.put_object(
                    Bucket=ticket.bucket,
                    Key=ticket.key,
                    Body=fh,
                    ContentDisposition=disposition,
                    ACL='public-read',
                )
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error("Upload of %s to bucket %s failed: %s", filename, ticket.bucket, e)
            raise StorageError(str(e)) from e

        logger.info("Uploaded %s to %s/%s", filename, ticket.bucket, ticket.key)
