"""Loading and validation of Google service account credentials."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence

from google.oauth2 import service_account

from gridsync.errors import CredentialsError

SCOPES: Sequence[str] = ("https://www.googleapis.com/auth/spreadsheets",)

REQUIRED_FIELDS: Iterable[str] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "token_uri",
)


def _normalise_private_key(key: str) -> str:
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.replace("\\n", "\n")
    if not key.endswith("\n"):
        key += "\n"
    return key


def _read_payload(path: Path) -> Mapping[str, object]:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise CredentialsError(f"Cannot read credentials file {path}: {exc}") from exc

    text = raw.strip()
    if not text:
        raise CredentialsError(f"Credentials file {path} is empty")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CredentialsError(f"Credentials file {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise CredentialsError(f"Credentials file {path} must contain a JSON object")
    return payload


def validate_service_account(payload: Mapping[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with a normalised private key.

    Raises :class:`CredentialsError` listing every missing field.
    """

    data: Dict[str, object] = dict(payload)
    missing = [
        name
        for name in REQUIRED_FIELDS
        if not isinstance(data.get(name), str) or not str(data.get(name)).strip()
    ]
    if data.get("type") != "service_account" and "type" not in missing:
        missing.append("type")
    if missing:
        raise CredentialsError("Service account JSON is missing fields: " + ", ".join(sorted(missing)))

    data["private_key"] = _normalise_private_key(str(data["private_key"]))
    return data


def load_service_account_data(path: Path) -> Dict[str, object]:
    return validate_service_account(_read_payload(Path(path).expanduser()))


def load_credentials(path: Path, scopes: Sequence[str] = SCOPES) -> service_account.Credentials:
    """Return service account credentials for the Sheets API."""

    payload = load_service_account_data(path)
    try:
        return service_account.Credentials.from_service_account_info(payload, scopes=list(scopes))
    except ValueError as exc:
        raise CredentialsError(f"Invalid service account key: {exc}") from exc


__all__ = [
    "REQUIRED_FIELDS",
    "SCOPES",
    "load_credentials",
    "load_service_account_data",
    "validate_service_account",
]
