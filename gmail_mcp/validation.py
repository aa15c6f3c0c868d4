"""
Input validation helpers for tool arguments.
"""

from __future__ import annotations

import re
from typing import Any

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(Exception):
  pass


def validate_email_address(value: Any, param_name: str) -> str:
  """Validate an email address."""
  if not isinstance(value, str) or not value:
    raise ValidationError(f"Missing required parameter: {param_name}")
  value = value.strip()
  if not _EMAIL.match(value):
    raise ValidationError(f"Invalid email address in {param_name}: {value}")
  return value


def validate_email_list(value: Any, param_name: str) -> list[str]:
  """Validate a list of email addresses or a comma-separated string."""
  if isinstance(value, str):
    parts = [p.strip() for p in value.split(",") if p.strip()]
  elif isinstance(value, list):
    parts = [str(p).strip() for p in value if p]
  else:
    raise ValidationError(f"Invalid {param_name}: must be a list or comma-separated string")

  if not parts:
    raise ValidationError(f"Missing required parameter: {param_name}")

  return [validate_email_address(addr, param_name) for addr in parts]


def opt_email_list(args: dict[str, Any], key: str) -> list[str] | None:
  """Read an optional address or list of addresses."""
  v = args.get(key)
  if v is None or v == [] or v == "":
    return None
  return validate_email_list(v, key)


def validate_label(value: Any, param_name: str = "label") -> str:
  """Validate a label (folder) path."""
  if not isinstance(value, str) or not value.strip():
    raise ValidationError(f"Missing required parameter: {param_name}")
  return value.strip()


def validate_label_list(value: Any, param_name: str = "labels") -> list[str]:
  if isinstance(value, str):
    value = [value]
  if not isinstance(value, list):
    raise ValidationError(f"Invalid {param_name}: must be a list of label names")
  labels = [validate_label(v, param_name) for v in value]
  if not labels:
    raise ValidationError(f"Provide at least one label in {param_name}")
  return labels


def validate_uid(value: Any, param_name: str = "message_id") -> int:
  """Validate a UID (positive integer)."""
  if isinstance(value, bool):
    raise ValidationError(f"Invalid {param_name}: must be a positive integer")
  if isinstance(value, (int, float)):
    uid = int(value)
  elif isinstance(value, str) and value.strip():
    try:
      uid = int(value.strip())
    except ValueError:
      raise ValidationError(f"Invalid {param_name}: must be a positive integer")
  else:
    raise ValidationError(f"Missing required parameter: {param_name}")
  if uid <= 0:
    raise ValidationError(f"Invalid {param_name}: must be a positive integer")
  return uid


def validate_uid_list(value: Any, param_name: str = "message_ids") -> list[int]:
  """Validate a non-empty list of UIDs."""
  if isinstance(value, (int, float, str)) and not isinstance(value, bool):
    return [validate_uid(value, param_name)]
  if not isinstance(value, list):
    raise ValidationError(f"Invalid {param_name}: must be an integer or list of integers")
  if not value:
    raise ValidationError("Provide at least one message ID")
  return [validate_uid(item, param_name) for item in value]


def opt_count(args: dict[str, Any], key: str = "count", fallback: int = 10, maximum: int = 100) -> int:
  """Read an optional count bounded to 1..maximum."""
  v = args.get(key)
  if v is None:
    return fallback
  if isinstance(v, bool) or not isinstance(v, (int, float)):
    raise ValidationError(f"Invalid {key}: must be a number")
  count = int(v)
  if count < 1 or count > maximum:
    raise ValidationError(f"Invalid {key}: must be between 1 and {maximum}")
  return count


def opt_string(args: dict[str, Any], key: str) -> str | None:
  """Read an optional string from args."""
  v = args.get(key)
  return v if isinstance(v, str) and v else None


def req_string(args: dict[str, Any], key: str, message: str | None = None) -> str:
  """Read a required string from args."""
  v = args.get(key)
  if not isinstance(v, str) or not v.strip():
    raise ValidationError(message or f"Missing required parameter: {key}")
  return v
