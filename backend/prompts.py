"""Instruction template sent ahead of every transcript."""

from __future__ import annotations

TRANSCRIPT_DELIMITER = "\n\nChat transcript:\n"

ANALYSIS_PROMPT = """Analyze this WhatsApp chat conversation and return ONLY a JSON object (no markdown formatting, no backticks) with the following structure. Make the analysis fun and engaging:

{
  "participants": {"person1": "name1", "person2": "name2"},
  "textingStyles": {
    "person1": {
      "enthusiasm": number between 0-100,
      "responseTime": number,
      "emojiUsage": number between 0-100,
      "emojiStats": [{"emoji": "😊", "count": number}],
      "textLength": "short/medium/long",
      "ghostingScore": number between 0-100
    },
    "person2": {
      "enthusiasm": number between 0-100,
      "responseTime": number,
      "emojiUsage": number between 0-100,
      "emojiStats": [{"emoji": "😊", "count": number}],
      "textLength": "short/medium/long",
      "ghostingScore": number between 0-100
    }
  },
  "moodMetrics": {"happy": number between 0-100, "neutral": number between 0-100, "sad": number between 0-100},
  "relationshipMetrics": {
    "compatibilityScore": number between 0-100,
    "breakupProbability": number between 0-100,
    "banterLevel": number between 0-100,
    "flirtScore": number between 0-100,
    "tension": number between 0-100,
    "redFlags": number between 0-10,
    "greenFlags": number between 0-10
  },
  "conversationFlow": {
    "dryTexting": number between 0-100,
    "excitementLevel": number between 0-100,
    "mutualInterest": number between 0-100,
    "topicVariety": number between 0-100
  },
  "responseTime": {"average": "time", "fastest": "time", "slowest": "time"},
  "funStats": {
    "whoTextedFirst": "person1" or "person2",
    "whoSendsMoreEmojis": "person1" or "person2",
    "whoGhostsMore": "person1" or "person2",
    "whoIsMoreClingy": "person1" or "person2"
  },
  "emojiStats": [{"emoji": "emoji", "count": number}],
  "petNames": ["name1", "name2"],
  "debates": [{"topic": "topic", "intensity": number between 0-100}],
  "insideJokes": ["joke1", "joke2"],
  "compliments": [{"from": "name", "to": "name", "text": "compliment"}],
  "memoryLane": [{"date": "date", "event": "event"}],
  "wordCloud": [{"word": "word", "frequency": number}],
  "apologies": [{"from": "name", "to": "name", "reason": "reason"}],
  "media": {"gifs": number, "images": number, "videos": number}
}

Make sure to extract real names from the chat. Be creative with the analysis while maintaining accuracy.
Important: Return ONLY the JSON object. Ensure all numbers are actual numbers, not strings."""


def build_analysis_prompt(transcript: str) -> str:
    """Return the full request text for ``transcript``."""
    return f"{ANALYSIS_PROMPT}{TRANSCRIPT_DELIMITER}{transcript}"
