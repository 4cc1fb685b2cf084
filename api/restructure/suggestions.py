"""
Merge suggestion client for the OpenAI Responses API.

The folder profiles of a bucket are rendered into a prompt and the model is
asked for a strict JSON answer shaped like FolderRestructureResponse.
"""

import json
import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from api.restructure.models import FolderAnalysis, FolderRestructureResponse
from core.config import get_settings

logger = logging.getLogger(__name__)

RESPONSES_API_PATH = "/v1/responses"


class SuggestionServiceError(Exception):
    """The merge suggestion service could not produce a usable answer."""


def build_system_prompt() -> str:
    return (
        "You are a file organization expert specializing in P.A.R.A. methodology "
        "folder structure optimization.\n"
        "\n"
        "TASK: Analyze folder structures and suggest mergers to reduce redundancy "
        "and improve organization.\n"
        "\n"
        "RULES:\n"
        "1. Look for folders that have similar purposes or overlapping content\n"
        "2. Consider folder names, file counts, and keywords to identify merge candidates\n"
        "3. Suggest meaningful new names for merged folders\n"
        "4. Only suggest merges that make logical sense\n"
        "5. Provide clear rationale for each suggestion\n"
        "\n"
        "OUTPUT: JSON response with merge suggestions following the schema.\n"
    )


def build_user_prompt(profiles: List[FolderAnalysis], bucket: str) -> str:
    """List every folder profile of the bucket, numbered from 1."""
    lines = [f"PARA Bucket: {bucket}", "", "현재 폴더 구조 분석:", ""]

    for index, profile in enumerate(profiles, start=1):
        lines.append(f"{index}. 폴더명: {profile.folder_name}")
        lines.append(
            f"   - 파일 수: {profile.file_count}개, 하위폴더 수: {profile.subfolder_count}개"
        )
        if profile.sample_file_names:
            lines.append(f"   - 대표 파일들: {', '.join(profile.sample_file_names)}")
        if profile.common_keywords:
            lines.append(f"   - 주요 키워드: {', '.join(profile.common_keywords)}")
        lines.append(f"   - 용도: {profile.folder_purpose}")
        lines.append("")

    lines.append(
        "위 폴더들 중에서 유사한 용도나 중복되는 내용을 가진 폴더들을 찾아 통합 제안을 해주세요. "
        "각 제안에 대해 명확한 근거를 제시해주세요."
    )
    return "\n".join(lines)


def build_text_format() -> Dict[str, Any]:
    """Strict JSON schema the model output has to follow."""
    merge_suggestion_schema = {
        "type": "object",
        "properties": {
            "target_folder": {"type": "string"},
            "source_folders": {"type": "array", "items": {"type": "string"}},
            "suggested_name": {"type": "string"},
            "rationale": {"type": "string"},
        },
        "required": ["target_folder", "source_folders", "suggested_name", "rationale"],
        "additionalProperties": False,
    }
    schema = {
        "type": "object",
        "properties": {
            "merge_suggestions": {"type": "array", "items": merge_suggestion_schema},
            "reason": {"type": "string"},
        },
        "required": ["merge_suggestions", "reason"],
        "additionalProperties": False,
    }
    return {
        "format": {
            "type": "json_schema",
            "name": "FolderRestructureResponse",
            "schema": schema,
            "strict": True,
        }
    }


def extract_output_text(payload: Dict[str, Any]) -> str:
    """Concatenate the text contents of every message in `output`."""
    output = payload.get("output") if isinstance(payload, dict) else None
    if not isinstance(output, list) or not output:
        raise SuggestionServiceError("OpenAI did not return any output")

    parts = []
    for message in output:
        contents = message.get("content") if isinstance(message, dict) else None
        if not isinstance(contents, list):
            continue
        for content in contents:
            if not isinstance(content, dict) or content.get("type") not in ("output_text", "text"):
                continue
            text = content.get("text")
            if text is not None and not isinstance(text, str):
                raise SuggestionServiceError(
                    f"Unexpected output text of type {type(text).__name__}"
                )
            parts.append(text or "")

    text = "".join(parts).strip()
    if not text:
        raise SuggestionServiceError("No content extracted from response")
    return text


async def request_merge_suggestions(
    profiles: List[FolderAnalysis],
    bucket: str,
    client: httpx.AsyncClient | None = None,
) -> FolderRestructureResponse:
    """
    Ask the model which folders of `bucket` should be merged.

    Args:
        profiles: Folder profiles of the bucket
        bucket: Canonical bucket name
        client: Optional client to send the request with (a new one is
            created and closed otherwise)

    Raises:
        SuggestionServiceError: when the key is missing, the call fails,
            or the answer cannot be parsed
    """
    settings = get_settings()
    api_key = settings.OPENAI_API_KEY
    if not api_key:
        raise SuggestionServiceError("OpenAI API key is not configured")

    request_body = {
        "model": settings.OPENAI_MODEL,
        "input": [
            {"role": "system", "content": build_system_prompt()},
            {"role": "user", "content": build_user_prompt(profiles, bucket)},
        ],
        "text": build_text_format(),
    }
    url = settings.OPENAI_BASE_URL.rstrip("/") + RESPONSES_API_PATH
    headers = {"Authorization": f"Bearer {api_key}"}

    logger.info("Requesting folder restructure suggestion for %d folders in %s", len(profiles), bucket)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.OPENAI_TIMEOUT_SECONDS) as own_client:
                response = await own_client.post(url, json=request_body, headers=headers)
        else:
            response = await client.post(
                url, json=request_body, headers=headers, timeout=settings.OPENAI_TIMEOUT_SECONDS
            )
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as e:
        logger.error("OpenAI Folder Restructure API Error - %s", e.response.text)
        raise SuggestionServiceError(f"OpenAI API returned error: {e.response.status_code}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("Failed to call OpenAI folder restructure API: %s", e)
        raise SuggestionServiceError(f"Failed to call OpenAI folder restructure API: {e}") from e
    except json.JSONDecodeError as e:
        raise SuggestionServiceError("OpenAI API returned a malformed body") from e

    text = extract_output_text(payload)
    logger.debug("Extracted JSON content: %s", text)

    try:
        result = FolderRestructureResponse.model_validate_json(text)
    except ValidationError as e:
        logger.error("Failed to parse folder restructure response: %s", e)
        raise SuggestionServiceError("Failed to parse folder restructure response") from e

    logger.info("Parsed folder restructure response with %d suggestions", len(result.merge_suggestions))
    return result
