# ee_init.py — Earth Engine session for the PM2.5 dashboard (service account first, geemap token opt-in)
import os
import json
import base64
import binascii

import streamlit as st
import ee

from airwatch.config import load_from_secrets_or_env

try:
    import geemap  # only needed for the optional token fallback
except ImportError:
    geemap = None

_GCP_SCOPES = [
    "https://www.googleapis.com/auth/earthengine",
    "https://www.googleapis.com/auth/drive",  # Export.table.toDrive
]

_REQUIRED_SA_FIELDS = ("type", "project_id", "private_key", "client_email", "token_uri")
_B64_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=\n\r")

_SETUP_HINT = (
    "Earth Engine is not initialized.\n\n"
    "Set EE_PRIVATE_KEY (complete service account JSON) and optionally EE_PROJECT.\n"
    "Example .streamlit/secrets.toml:\n"
    "  EE_PROJECT = \"ee-yourproject\"\n"
    "  EE_PRIVATE_KEY = '''{ ... JSON ... }'''\n"
    "EE_PRIVATE_KEY may also be Base64 or a path to a .json file.\n"
    "Set ALLOW_GEEMAP_FALLBACK=1 to use a stored geemap/earthengine OAuth token instead."
)


def _preview(s: str, n: int = 120) -> str:
    s = (s or "").strip().replace("\n", "\\n")
    return (s[:n] + ("…" if len(s) > n else "")) or "(empty)"


def _read_if_path(s: str) -> str:
    # Base64 may contain '/', so only a .json suffix or an existing file counts as a path
    if len(s) >= 512 or not (s.endswith(".json") or (os.path.sep in s and os.path.isfile(s))):
        return s
    if not os.path.exists(s):
        raise FileNotFoundError(f"EE_PRIVATE_KEY points to a path that does not exist: {s}")
    with open(s, "r", encoding="utf-8") as f:
        return f.read().strip()


def _load_json_object(s: str, what: str):
    if not (s.startswith("{") and s.endswith("}")):
        return None
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise ValueError(f"EE_PRIVATE_KEY {what}: {e}") from e


def _b64_text(s: str) -> str:
    if not set(s) <= _B64_ALPHABET:
        return ""
    try:
        return base64.b64decode(s, validate=False).decode("utf-8").strip()
    except (binascii.Error, UnicodeDecodeError):
        return ""


def _parse_service_account_json(raw: str) -> dict:
    """Service account key from JSON text, Base64-encoded JSON or a path to a .json file."""
    if not raw or not isinstance(raw, str):
        raise ValueError("EE_PRIVATE_KEY is empty or not a string.")

    s = _read_if_path(raw.strip())

    info = _load_json_object(s, "looks like JSON but could not be parsed")
    if info is not None:
        return info

    if "BEGIN PRIVATE KEY" in s and "client_email" not in s:
        raise ValueError(
            "EE_PRIVATE_KEY seems to contain only the 'private_key' block. "
            "The **complete** service account JSON (type, project_id, client_email, token_uri, …) is required."
        )

    info = _load_json_object(_b64_text(s), "decodes from Base64 but is not valid JSON")
    if info is not None:
        return info

    raise ValueError(
        "EE_PRIVATE_KEY has an unknown format.\n"
        f"Preview: {_preview(s)}\n\n"
        "Accepted forms:\n"
        "  • JSON text (starting with '{')\n"
        "  • Base64-encoded JSON\n"
        "  • Path to a JSON file"
    )


def _build_credentials(svc_info: dict):
    from google.oauth2 import service_account

    missing = [k for k in _REQUIRED_SA_FIELDS if not svc_info.get(k)]
    if missing:
        raise ValueError(f"Service account JSON incomplete: field '{missing[0]}' is missing or empty.")
    if svc_info["type"] != "service_account":
        raise ValueError("Service account JSON: 'type' must be 'service_account'.")
    return service_account.Credentials.from_service_account_info(svc_info, scopes=_GCP_SCOPES)


def _geemap_allowed() -> bool:
    val = load_from_secrets_or_env("ALLOW_GEEMAP_FALLBACK")
    if val is None:
        return False  # no interactive OAuth on headless deployments
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def _is_initialized() -> bool:
    try:
        ee.Number(1).getInfo()
        return True
    except Exception:
        return False


def _init_service_account(raw_key: str, ee_project) -> str:
    kwargs = {"credentials": _build_credentials(_parse_service_account_json(raw_key))}
    if ee_project:
        kwargs["project"] = ee_project
    ee.Initialize(**kwargs)
    ee.Number(1).getInfo()
    return "ok:service_account_json" + ("_with_project" if ee_project else "")


def _init_geemap_token(ee_project) -> str:
    if geemap is None:
        raise RuntimeError("geemap is not installed")
    token_name = load_from_secrets_or_env("EARTHENGINE_TOKEN") or "EARTHENGINE_TOKEN"
    geemap.ee_initialize(token_name=str(token_name), project=ee_project)
    ee.Number(1).getInfo()
    return "ok:geemap_token"


def _credential_sources(raw_key, ee_project):
    """(init, failure message) pairs in the order they are tried."""
    if raw_key:
        yield (
            lambda: _init_service_account(raw_key, ee_project),
            "Earth Engine initialization with the service account JSON failed.\n"
            f"EE_PRIVATE_KEY preview: {_preview(raw_key)}\n\n"
            "Please check:\n"
            "• EE_PRIVATE_KEY holds the **complete** JSON (not only private_key)\n"
            "• Format is JSON, Base64 JSON or a valid file path\n"
            "• The service account is registered for Earth Engine and linked to the project\n"
            "• Optional: EE_PROJECT is set correctly",
        )
    if _geemap_allowed():
        yield (
            lambda: _init_geemap_token(ee_project),
            "geemap token fallback failed (OAuth token missing or incomplete). "
            "A service account is recommended for server deployments.",
        )


@st.cache_resource(show_spinner=False)
def ee_client_init() -> str:
    """Initialize EE once per session. Returns a short tag naming the credential source."""
    if _is_initialized():
        return "ok:already_initialized"

    ee_project = load_from_secrets_or_env("EE_PROJECT")
    for init, failure in _credential_sources(load_from_secrets_or_env("EE_PRIVATE_KEY"), ee_project):
        try:
            return init()
        except Exception as e:
            st.error(failure)
            st.exception(e)

    st.error(_SETUP_HINT)
    st.stop()


def ensure_ee_ready() -> None:
    _ = ee_client_init()
