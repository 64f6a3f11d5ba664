"""
AWS Bedrock client wrapper for LLM operations (Converse API)
"""

import json
import re
import boto3
from botocore.config import Config as BotoConfig
from typing import Dict, Any, Optional, List

from utils.logging_utils import get_logger

logger = get_logger(__name__)

# Declared media type -> Converse document format
DOCUMENT_FORMATS = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}


def document_format_for(media_type: Optional[str]) -> Optional[str]:
    """Map a media type (parameters such as charset ignored) to a Converse document format"""
    if not media_type:
        return None
    return DOCUMENT_FORMATS.get(media_type.split(";")[0].strip().lower())


def document_block(data: bytes, media_type: str, name: str = "document") -> Dict[str, Any]:
    """
    Build a Converse document content block

    Args:
        data: Raw document bytes
        media_type: Declared media type (must be one of DOCUMENT_FORMATS)
        name: Display name, reduced to the characters Bedrock accepts

    Returns:
        Content block dict
    """
    doc_format = document_format_for(media_type)
    if doc_format is None:
        raise ValueError(f"Unsupported document media type: {media_type}")

    # Bedrock allows alphanumerics, single spaces, hyphens, parentheses and square brackets
    safe_name = re.sub(r"[^A-Za-z0-9\s\-\(\)\[\]]", " ", name)
    safe_name = re.sub(r"\s+", " ", safe_name).strip()[:200] or "document"

    return {
        "document": {
            "format": doc_format,
            "name": safe_name,
            "source": {"bytes": data},
        }
    }


def parse_json_text(response_text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of free model text (fenced or bare)

    Raises:
        ValueError: If no JSON object can be recovered
    """
    if "```json" in response_text:
        json_start = response_text.find("```json") + 7
        json_end = response_text.find("```", json_start)
        json_text = response_text[json_start:json_end if json_end != -1 else None].strip()
    elif "```" in response_text:
        json_start = response_text.find("```") + 3
        json_end = response_text.find("```", json_start)
        json_text = response_text[json_start:json_end if json_end != -1 else None].strip()
    else:
        json_text = response_text.strip()

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError:
        json_match = re.search(r'\{.*\}', response_text, re.DOTALL)
        if not json_match:
            raise ValueError(f"Could not parse JSON from response: {response_text[:200]}")
        try:
            parsed = json.loads(json_match.group())
        except json.JSONDecodeError:
            raise ValueError(f"Could not parse JSON from response: {response_text[:200]}")

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class BedrockClient:
    """
    Wrapper for AWS Bedrock Converse calls
    """

    def __init__(self, region_name: str = "us-east-1",
                 model_id: str = "anthropic.claude-3-haiku-20240307-v1:0",
                 read_timeout: float = 60.0, connect_timeout: float = 10.0,
                 runtime_client=None):
        """
        Initialize Bedrock client

        Args:
            region_name: AWS region
            model_id: Bedrock model identifier
            read_timeout: Seconds to wait for a response before failing the call
            connect_timeout: Seconds to wait for a connection
            runtime_client: Pre-built bedrock-runtime client (tests)
        """
        self.region_name = region_name
        self.model_id = model_id
        # SDK retries are off; the extraction contract owns the retry policy
        self.bedrock_runtime = runtime_client or boto3.client(
            'bedrock-runtime',
            region_name=region_name,
            config=BotoConfig(
                read_timeout=read_timeout,
                connect_timeout=connect_timeout,
                retries={"total_max_attempts": 1, "mode": "standard"},
            ),
        )

    def converse(self, messages: List[Dict[str, Any]], system_prompt: Optional[str] = None,
                 max_tokens: int = 4096, temperature: float = 0.0,
                 tool_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call the Converse API

        Args:
            messages: Converse messages (alternating user/assistant, starting with user)
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0 for deterministic)
            tool_config: Optional toolConfig

        Returns:
            Raw Converse response
        """
        kwargs = {
            "modelId": self.model_id,
            "messages": messages,
            "inferenceConfig": {"maxTokens": max_tokens, "temperature": temperature},
        }
        if system_prompt:
            kwargs["system"] = [{"text": system_prompt}]
        if tool_config:
            kwargs["toolConfig"] = tool_config

        response = self.bedrock_runtime.converse(**kwargs)
        usage = response.get("usage", {})
        logger.debug(
            f"Converse finished: stop_reason={response.get('stopReason')}, "
            f"input_tokens={usage.get('inputTokens')}, output_tokens={usage.get('outputTokens')}"
        )
        return response

    def invoke_text(self, messages: List[Dict[str, Any]], system_prompt: Optional[str] = None,
                    max_tokens: int = 2000, temperature: float = 0.7) -> str:
        """
        Generate free text

        Returns:
            Concatenated text blocks of the reply
        """
        response = self.converse(messages, system_prompt, max_tokens, temperature)
        content = response.get("output", {}).get("message", {}).get("content", [])
        return "".join(block.get("text", "") for block in content).strip()

    def invoke_tool(self, content: List[Dict[str, Any]], tool_name: str, description: str,
                    input_schema: Dict[str, Any], system_prompt: Optional[str] = None,
                    max_tokens: int = 4096, temperature: float = 0.0) -> Dict[str, Any]:
        """
        Force the model to answer through a single tool whose input is the target shape

        Args:
            content: User message content blocks (text and documents)
            tool_name: Tool name
            description: Tool description
            input_schema: JSON schema of the tool input
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Tool input as a dict

        Raises:
            ValueError: If the reply contains neither a tool call nor a JSON object
        """
        tool_config = {
            "tools": [{
                "toolSpec": {
                    "name": tool_name,
                    "description": description,
                    "inputSchema": {"json": input_schema},
                }
            }],
            "toolChoice": {"tool": {"name": tool_name}},
        }
        response = self.converse(
            [{"role": "user", "content": content}],
            system_prompt, max_tokens, temperature, tool_config,
        )

        blocks = response.get("output", {}).get("message", {}).get("content", [])
        for block in blocks:
            tool_use = block.get("toolUse")
            if tool_use and tool_use.get("name") == tool_name:
                tool_input = tool_use.get("input")
                if isinstance(tool_input, dict):
                    return tool_input
                if isinstance(tool_input, str):
                    return parse_json_text(tool_input)

        text = "".join(block.get("text", "") for block in blocks)
        if response.get("stopReason") == "max_tokens":
            raise ValueError("Model output was truncated before the structured answer was complete")
        if not text.strip():
            raise ValueError("Model returned no structured output")
        return parse_json_text(text)
