import json
import logging
import os
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).parent.parent
ENV_FILE_PATH = ROOT_DIR / '.env'
ENV_LOCAL_FILE_PATH = ROOT_DIR / '.env.local'
ENV_TEST_FILE_PATH = ROOT_DIR / '.env.test'


def get_setting_env_file():
    if 'PYTEST_VERSION' in os.environ:
        return [ENV_TEST_FILE_PATH]

    return [ENV_FILE_PATH, ENV_LOCAL_FILE_PATH]


class AwsSecretsManagerSource(PydanticBaseSettingsSource):
    """
    A pydantic-settings source that loads settings from AWS Secrets Manager.

    Only active when AWS_SECRET_NAME is set, which is how the Lambda
    deployment hands over DATABASE_URL without baking it into the template.
    """

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self.secret_name = os.getenv('AWS_SECRET_NAME', '')
        self.region_name = os.getenv('AWS_DEFAULT_REGION', 'eu-central-1')
        self.secrets = self._load_secrets() if self.secret_name else {}

    def _load_secrets(self) -> dict[str, Any]:
        session = boto3.session.Session()
        client = session.client(
            service_name='secretsmanager', region_name=self.region_name
        )
        try:
            get_secret_value_response = client.get_secret_value(
                SecretId=self.secret_name
            )
        except (ClientError, NoCredentialsError, BotoCoreError) as e:
            logger.error(
                f"Could not load settings from AWS Secrets Manager secret '{self.secret_name}': {e}"
            )
            return {}

        secret_string = get_secret_value_response.get('SecretString') or '{}'
        try:
            secrets = json.loads(secret_string)
        except json.JSONDecodeError as e:
            logger.error(f"Secret '{self.secret_name}' is not a JSON object: {e}")
            return {}
        return secrets if isinstance(secrets, dict) else {}

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str] | None:
        return self.secrets.get(field_name), field_name

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self.secrets.items()
            if name in self.settings_cls.model_fields
        }


class Settings(BaseSettings):
    SERVER_HOST: str = '0.0.0.0'
    SERVER_PORT: int = 3000

    # Required; checked when the pool is initialized, not at import
    DATABASE_URL: str = ''

    # Database connection pooling settings
    DATABASE_POOL_SIZE: int = 15
    DATABASE_MAX_OVERFLOW: int = 0
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600
    DATABASE_POOL_PRE_PING: bool = True
    DATABASE_CONNECT_TIMEOUT: int = 5

    HEALTHCHECK_TIMEOUT_SECONDS: float = 10.0
    HEALTHCHECK_QUERY: str = 'SELECT 1'
    HEALTHCHECK_WORKERS: int = 15

    LOG_LEVEL: str = 'DEBUG'
    ENVIRONMENT: str = 'development'
    API_SENTRY_DSN: str | None = None

    model_config = SettingsConfigDict(
        env_file=get_setting_env_file(),
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            AwsSecretsManagerSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
