"""
AI waste classification via an OpenAI-compatible chat-completions gateway.

The gateway is asked to answer exclusively through the ``classify_waste``
function tool; its arguments are returned to the caller untouched.
"""

import json
import logging

import requests

logger = logging.getLogger(__name__)

WASTE_TYPES = ["recyclable", "organic", "hazardous", "burnable", "reusable"]

SYSTEM_PROMPT = (
    "You are an expert waste classification AI. Analyze the image and classify the waste items you see. "
    "For each item, determine the waste type and provide a disposal recommendation.\n\n"
    "Waste types: recyclable, organic, hazardous, burnable, reusable.\n\n"
    "You MUST respond using the classify_waste tool."
)

USER_PROMPT = "Classify the waste in this image. Identify all distinct items."

CLASSIFY_WASTE_TOOL = {
    "type": "function",
    "function": {
        "name": "classify_waste",
        "description": "Return waste classification results for all items in the image.",
        "parameters": {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "item": {"type": "string", "description": "Name of the waste item"},
                            "type": {"type": "string", "enum": WASTE_TYPES},
                            "confidence": {"type": "number", "description": "Confidence score 0-100"},
                            "recommendation": {"type": "string", "description": "Disposal recommendation"},
                            "environmental_impact": {
                                "type": "string",
                                "description": "Brief environmental impact note",
                            },
                        },
                        "required": ["item", "type", "confidence", "recommendation", "environmental_impact"],
                        "additionalProperties": False,
                    },
                },
                "summary": {"type": "string", "description": "Overall summary of the waste analysis"},
            },
            "required": ["items", "summary"],
            "additionalProperties": False,
        },
    },
}

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again shortly."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add funds."
ANALYSIS_FAILED_MESSAGE = "AI analysis failed"
NO_STRUCTURED_RESULT_MESSAGE = "AI did not return structured results"


class ClassificationError(Exception):
    """Classification failure carrying the HTTP status to relay."""

    def __init__(self, message, status_code=500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def build_gateway_payload(image_base64, model):
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_base64}},
                ],
            },
        ],
        "tools": [CLASSIFY_WASTE_TOOL],
        "tool_choice": {"type": "function", "function": {"name": "classify_waste"}},
    }


def _extract_tool_arguments(body):
    try:
        tool_call = body["choices"][0]["message"]["tool_calls"][0]
        arguments = tool_call["function"]["arguments"]
    except (KeyError, IndexError, TypeError):
        raise ClassificationError(NO_STRUCTURED_RESULT_MESSAGE, 500)

    if isinstance(arguments, dict):
        return arguments
    try:
        return json.loads(arguments)
    except (TypeError, ValueError):
        raise ClassificationError(NO_STRUCTURED_RESULT_MESSAGE, 500)


def classify_waste_image(image_base64, api_key, url, model, timeout=60):
    """
    Send one image to the gateway and return the parsed tool arguments.

    Raises ClassificationError with the status code to relay on any failure.
    """
    if not api_key:
        raise ClassificationError("AI_GATEWAY_API_KEY is not configured", 500)

    try:
        response = requests.post(
            url,
            headers={
                "Authorization": "Bearer {}".format(api_key),
                "Content-Type": "application/json",
            },
            json=build_gateway_payload(image_base64, model),
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.error("AI gateway request failed: %s", exc)
        raise ClassificationError(ANALYSIS_FAILED_MESSAGE, 500)

    if response.status_code == 429:
        raise ClassificationError(RATE_LIMITED_MESSAGE, 429)
    if response.status_code == 402:
        raise ClassificationError(CREDITS_EXHAUSTED_MESSAGE, 402)
    if not response.ok:
        logger.error("AI gateway error %s: %s", response.status_code, response.text[:500])
        raise ClassificationError(ANALYSIS_FAILED_MESSAGE, 500)

    try:
        body = response.json()
    except ValueError:
        logger.error("AI gateway returned a non-JSON body")
        raise ClassificationError(ANALYSIS_FAILED_MESSAGE, 500)

    return _extract_tool_arguments(body)
