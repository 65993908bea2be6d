"""
Keyword heuristics for quick email triage (no model call)
"""

URGENT_WORDS = ["urgent", "asap", "important", "critical", "emergency", "immediate"]

POSITIVE_WORDS = ["thank", "thanks", "great", "excellent", "love", "happy", "good"]
NEGATIVE_WORDS = ["sorry", "issue", "problem", "concern", "unhappy", "disappointed"]


def check_if_urgent(text: str) -> str:
    """'high' if any urgent word appears, else 'medium'"""
    text_lower = text.lower()
    return "high" if any(word in text_lower for word in URGENT_WORDS) else "medium"


def analyze_sentiment(text: str) -> str:
    """Classify as positive / negative / neutral by keyword counts"""
    text_lower = text.lower()

    positive = sum(1 for word in POSITIVE_WORDS if word in text_lower)
    negative = sum(1 for word in NEGATIVE_WORDS if word in text_lower)

    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"
