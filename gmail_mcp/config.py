"""Settings loaded from the environment (or a .env file)."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ImapConfig(BaseModel):
  host: str
  port: int = 993
  user: str
  password: str
  tls: bool = True
  verify_certificates: bool = True
  timeout: float = 30.0


class SmtpConfig(BaseModel):
  host: str
  port: int = 587
  user: str
  password: str


class Settings(BaseSettings):
  model_config = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    case_sensitive=False,
  )

  email_address: str = ""
  email_password: SecretStr = Field(default=SecretStr(""))

  imap_host: str = "imap.gmail.com"
  imap_port: int = 993
  imap_tls: bool = True
  imap_verify_certificates: bool = True
  imap_timeout: float = 30.0

  smtp_host: str = "smtp.gmail.com"
  smtp_port: int = 587

  log_level: str = "INFO"

  @property
  def has_credentials(self) -> bool:
    return bool(self.email_address and self.email_password.get_secret_value())

  def imap_config(self) -> ImapConfig:
    return ImapConfig(
      host=self.imap_host,
      port=self.imap_port,
      user=self.email_address,
      password=self.email_password.get_secret_value(),
      tls=self.imap_tls,
      verify_certificates=self.imap_verify_certificates,
      timeout=self.imap_timeout,
    )

  def smtp_config(self) -> SmtpConfig:
    return SmtpConfig(
      host=self.smtp_host,
      port=self.smtp_port,
      user=self.email_address,
      password=self.email_password.get_secret_value(),
    )


@lru_cache
def get_settings() -> Settings:
  return Settings()
