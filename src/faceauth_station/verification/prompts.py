"""Prompt text and response schemas sent to the vision model."""

from __future__ import annotations

from ..core.enums import LivenessAction

VALIDATION_PROMPT = (
    "Analyze this image. Does it contain exactly one clear human face suitable for ID verification? "
    'Return JSON: { "valid": boolean, "reason": string }'
)

VALIDATION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "valid": {"type": "BOOLEAN"},
        "reason": {"type": "STRING"},
    },
    "required": ["valid"],
}

VERIFICATION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "match": {"type": "BOOLEAN"},
        "matchedUserIndex": {"type": "INTEGER"},
        "confidence": {"type": "NUMBER"},
        "livenessConfirmed": {"type": "BOOLEAN"},
        "spoofDetected": {"type": "BOOLEAN"},
        "reason": {"type": "STRING"},
    },
    "required": ["match", "matchedUserIndex", "confidence", "livenessConfirmed", "spoofDetected", "reason"],
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_NONE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def verification_prompt(candidate_count: int, challenge: LivenessAction) -> str:
    return f"""
Analyze these images for a biometric security check.
Image 1 (First Image): Live Camera Feed.
Remaining Images: Registered Users (Index 0 to {candidate_count - 1}).

Task:
1. Compare Image 1 with the Registered User images.
2. Check if Image 1 is performing the action: "{challenge.value}".
3. Check Image 1 for spoofing (screens, printed photos).

Return JSON:
{{
   "match": boolean,
   "matchedUserIndex": integer (Index in the list, -1 if no match),
   "livenessConfirmed": boolean,
   "spoofDetected": boolean,
   "confidence": number (0-1),
   "reason": string
}}
""".strip()
