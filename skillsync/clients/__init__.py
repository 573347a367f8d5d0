from .genai_client import get_model, SYSTEM_INSTRUCTION

__all__ = ["get_model", "SYSTEM_INSTRUCTION"]
