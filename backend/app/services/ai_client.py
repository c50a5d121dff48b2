"""
LLM client used for transcript assessment and question generation.

Primary provider:
  Oracle Generative AI Inference via OCI SDK + signed requests using ~/.oci/config.

Fallback:
  Anthropic, only when OCI is not configured.

When neither is configured `chat()` raises AINotConfiguredError so callers
can mark the assessment as failed instead of caching a placeholder.
"""

import json
import asyncio
import logging
from pathlib import Path

import oci

from app.config import settings

logger = logging.getLogger(__name__)


class AINotConfiguredError(RuntimeError):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Request / response builders
# ─────────────────────────────────────────────────────────────────────────────

def _is_cohere(model_id: str) -> bool:
    forced = settings.ORACLE_GENAI_API_FORMAT.strip().upper()
    if forced == "COHERE":
        return True
    if forced == "GENERIC":
        return False
    return model_id.lower().startswith("cohere.")


def _build_chat_body(
    system: str,
    messages: list[dict],
    max_tokens: int,
    temperature: float,
) -> dict:
    """Build JSON body for POST /20231130/actions/chat."""
    model_id = settings.ORACLE_GENAI_MODEL
    serving_mode = {"servingType": "ON_DEMAND", "modelId": model_id}

    if _is_cohere(model_id):
        # Cohere takes the last turn as "message" and the rest as history
        history = [
            {"role": "USER" if m.get("role", "user") == "user" else "CHATBOT", "message": m.get("content", "")}
            for m in messages[:-1]
        ]
        chat_req: dict = {
            "apiFormat": "COHERE",
            "message": messages[-1].get("content", "") if messages else "",
            "maxTokens": max_tokens,
            "temperature": temperature,
            "isStream": False,
        }
        if system:
            chat_req["preambleOverride"] = system
        if history:
            chat_req["chatHistory"] = history
    else:
        chat_req = {
            "apiFormat": "GENERIC",
            "messages": [
                {
                    "role": "USER" if m.get("role", "user") == "user" else "ASSISTANT",
                    "content": [{"type": "TEXT", "text": m.get("content", "")}],
                }
                for m in messages
            ],
            "maxTokens": max_tokens,
            "temperature": temperature,
            "isStream": False,
        }
        if system:
            chat_req["systemMessage"] = system

    body: dict = {"servingMode": serving_mode, "chatRequest": chat_req}
    if settings.ORACLE_GENAI_COMPARTMENT_ID:
        body["compartmentId"] = settings.ORACLE_GENAI_COMPARTMENT_ID
    return body


def _extract_text(response_json: dict) -> str:
    """Pull plain text from an /actions/chat response."""
    chat_resp = response_json.get("chatResponse", {})
    if chat_resp.get("apiFormat", "GENERIC") == "COHERE":
        return chat_resp.get("text", "")
    choices = chat_resp.get("choices", [])
    if not choices:
        return ""
    content = choices[0].get("message", {}).get("content", [])
    if isinstance(content, list) and content:
        return content[0].get("text", "")
    return str(content)


def parse_json_reply(raw: str) -> dict:
    """Decode a JSON object from a model reply, tolerating markdown fences."""
    text = raw.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return json.loads(text)


# ─────────────────────────────────────────────────────────────────────────────
# Oracle GenAI: OCI signed requests
# ─────────────────────────────────────────────────────────────────────────────

def _oci_config() -> dict:
    cfg_file = str(Path(settings.OCI_CONFIG_FILE).expanduser())
    return oci.config.from_file(file_location=cfg_file, profile_name=settings.OCI_CONFIG_PROFILE)


def _oci_endpoint(cfg: dict) -> str:
    if settings.ORACLE_GENAI_BASE_URL:
        return settings.ORACLE_GENAI_BASE_URL.rstrip("/")
    region = cfg.get("region", "us-chicago-1")
    return f"https://inference.generativeai.{region}.oci.oraclecloud.com"


def _oci_post(path: str, body: dict, timeout: tuple = (10.0, 120.0)) -> dict:
    """Perform a signed POST request via the OCI base client and return the JSON dict."""
    cfg = _oci_config()
    client = oci.generative_ai_inference.GenerativeAiInferenceClient(
        config=cfg,
        service_endpoint=_oci_endpoint(cfg),
        timeout=timeout,
    )
    response = client.base_client.call_api(
        resource_path=path,
        method="POST",
        header_params={"content-type": "application/json"},
        body=body,
        response_type="str",
    )
    text = response.data if isinstance(response.data, str) else str(response.data)
    return json.loads(text)


async def _oracle_chat(system: str, messages: list[dict], max_tokens: int, temperature: float) -> str:
    body = _build_chat_body(system, messages, max_tokens, temperature)
    # The SDK prefixes the API version, so the path omits /20231130
    data = await asyncio.to_thread(_oci_post, "/actions/chat", body)
    return _extract_text(data)


# ─────────────────────────────────────────────────────────────────────────────
# Anthropic: only used when OCI is not configured
# ─────────────────────────────────────────────────────────────────────────────

async def _anthropic_chat(system: str, messages: list[dict], max_tokens: int, temperature: float) -> str:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
    try:
        response = await client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
        )
    except anthropic.APIError as e:
        raise RuntimeError(f"Anthropic error: {e}") from e
    return response.content[0].text


# ─────────────────────────────────────────────────────────────────────────────
# Status helpers
# ─────────────────────────────────────────────────────────────────────────────

def _oracle_configured() -> bool:
    return bool(
        settings.OCI_CONFIG_FILE
        and settings.OCI_CONFIG_PROFILE
        and settings.ORACLE_GENAI_MODEL
        and settings.ORACLE_GENAI_COMPARTMENT_ID
    )


def _anthropic_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


def ai_provider_name() -> str:
    if _oracle_configured():
        return f"Oracle GenAI OCI-Signed ({settings.ORACLE_GENAI_MODEL})"
    if _anthropic_configured():
        return f"Anthropic ({settings.ANTHROPIC_MODEL})"
    return "none"


async def ai_health_check() -> dict:
    """Live connectivity test, called by /api/health/ai."""
    provider = ai_provider_name()
    if provider == "none":
        return {
            "provider": "none",
            "status": "unconfigured",
            "message": "Set ORACLE_GENAI_COMPARTMENT_ID (OCI) or ANTHROPIC_API_KEY in .env.",
        }

    try:
        reply = await chat(
            system="You are a test assistant.",
            messages=[{"role": "user", "content": "Reply with exactly: OK"}],
            max_tokens=10,
            temperature=0.0,
        )
        return {"provider": provider, "status": "ok", "test_reply": reply.strip()}
    except Exception as e:
        logger.warning("AI health check failed: %s", e)
        return {"provider": provider, "status": "error", "error": str(e)}


# ─────────────────────────────────────────────────────────────────────────────
# Public chat(): the single entry point used by the agents
# ─────────────────────────────────────────────────────────────────────────────

async def chat(
    system: str,
    messages: list[dict],
    max_tokens: int = 400,
    temperature: float = 0.3,
) -> str:
    """
    Send a chat completion request.

    Provider priority:
      1. Oracle GenAI (OCI signed): when OCI config + compartment + model are set
      2. Anthropic: when ANTHROPIC_API_KEY is set and OCI is not
    Oracle failures are surfaced, never silently retried on Anthropic.
    """
    if _oracle_configured():
        return await _oracle_chat(system, messages, max_tokens, temperature)
    if _anthropic_configured():
        return await _anthropic_chat(system, messages, max_tokens, temperature)
    raise AINotConfiguredError("No LLM provider configured")
