from pydantic import Field

from infrastructure.configuration.base import SectionSettings


class AwsSettings(SectionSettings):
    """AWS access for the DynamoDB idempotency backend.

    Environment Variables:
        AWS_REGION: Region of the idempotency table (default: ca-central-1)
        AWS_DYNAMODB_ENDPOINT_URL: Endpoint override, e.g. DynamoDB Local
    """

    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    DYNAMODB_ENDPOINT_URL: str | None = Field(
        default=None, alias="AWS_DYNAMODB_ENDPOINT_URL"
    )
