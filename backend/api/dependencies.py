from fastapi import HTTPException, Request

from detection.detector import ComposableDetector
from llm.client import AIStack


def get_detector(request: Request) -> ComposableDetector:
    return request.app.state.detector


def get_ai_stack(request: Request) -> AIStack:
    stack: AIStack | None = request.app.state.ai_stack
    if stack is None:
        raise HTTPException(status_code=503, detail="AI gateway is disabled")
    return stack
