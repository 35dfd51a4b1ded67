from app.middleware.retry import retry_model, retry_tool

__all__ = ["retry_model", "retry_tool"]
