# app/main.py
from fastapi import FastAPI

from app.api.routes import classification_routes, root_routes
from app.core.startup import startup_event

app = FastAPI()

app.include_router(root_routes.router)
app.include_router(classification_routes.router, prefix="/api/classification", tags=["Classification"])

@app.on_event("startup")
async def app_startup():
    await startup_event(app)
