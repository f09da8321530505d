from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

@router.get("/")
def root():
    return {"service": "docgen-pipeline", "version": "0.1.0"}

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/ready")
def ready(request: Request):
    dispatcher = request.app.state.dispatcher
    queue = dispatcher.queue
    return {
        "ready": True,
        "dispatch_policy": dispatcher.policy.value,
        "queue_running": bool(queue and queue.running),
    }
