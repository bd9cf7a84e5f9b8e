from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    client = request.app.state.wiki_client
    return {
        "status": "ok",
        "mw_api": client.api_url,
        "user": client.username,
        "logged_in": client.logged_in,
    }
