__all__ = [
    "FeedbackItem",
    "SummaryError",
    "progress_note",
    "rating_label",
    "summarize_feedback",
]

from .summary import FeedbackItem, progress_note, rating_label, summarize_feedback, SummaryError
