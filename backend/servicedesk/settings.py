from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from servicedesk.slack.modal import ModalConfig
from servicedesk.slack.thread import ConversationRestriction

load_dotenv()


class Settings(BaseSettings):
    # Slack
    slack_bot_token: str = Field(default="test", alias="SLACK_BOT_TOKEN")
    slack_signing_secret: str | None = Field(default=None, alias="SLACK_SIGNING_SECRET")
    slack_api_url: str = Field(default="https://slack.com/api", alias="SLACK_API_URL")
    slack_primary_channel: str | None = Field(default=None, alias="SLACK_PRIMARY_CHANNEL")
    slack_conversation_restriction: ConversationRestriction = Field(
        default=ConversationRestriction.NONE, alias="SLACK_CONVERSATION_RESTRICTION"
    )
    # Raw JSON, parsed by `modal_config`
    submit_modal_config: str | None = Field(default=None, alias="SUBMIT_MODAL_CONFIG")
    # Jira
    jira_host: str | None = Field(default=None, alias="JIRA_HOST")
    jira_username: str | None = Field(default=None, alias="JIRA_USERNAME")
    jira_api_token: str | None = Field(default=None, alias="JIRA_API_TOKEN")
    jira_project_key: str = Field(default="SD", alias="JIRA_PROJECT_KEY")
    jira_issue_type: str = Field(default="Task", alias="JIRA_ISSUE_TYPE")
    jira_webhook_secret: str | None = Field(default=None, alias="JIRA_WEBHOOK_SECRET")
    # HTTP timeout for outbound API calls, seconds
    http_timeout: float = Field(default=10.0, alias="HTTP_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("slack_primary_channel", "submit_modal_config", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("slack_conversation_restriction", mode="before")
    @classmethod
    def _normalize_restriction(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return ConversationRestriction.NONE
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def modal_config(self) -> ModalConfig:
        """Return the intake modal configuration.

        Falls back to the built-in defaults when SUBMIT_MODAL_CONFIG is not set.
        """
        if not self.submit_modal_config:
            return ModalConfig()
        return ModalConfig.model_validate_json(self.submit_modal_config)

    @property
    def jira_configured(self) -> bool:
        return bool(self.jira_host and self.jira_username and self.jira_api_token)

    @property
    def jira_base_url(self) -> str:
        host = (self.jira_host or "").rstrip("/")
        if host and not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return host


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
