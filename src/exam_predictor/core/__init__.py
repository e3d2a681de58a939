"""Core adapters and shared utilities."""

from exam_predictor.core.extract import UploadedFile, check_file_type
from exam_predictor.core.model_client import chat_completion
from exam_predictor.core.printing import print_prediction, print_prediction_rows
from exam_predictor.core.prompt import build_prompt
from exam_predictor.core.retry import call_with_retry

__all__ = [
    "UploadedFile",
    "build_prompt",
    "call_with_retry",
    "chat_completion",
    "check_file_type",
    "print_prediction",
    "print_prediction_rows",
]
