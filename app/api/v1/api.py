from fastapi import APIRouter

from app.api.v1.appointments import routes as appointments
from app.api.v1.auth import routes as auth
from app.api.v1.webhooks import routes as webhooks

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(appointments.router, tags=["Appointments"])
api_router.include_router(webhooks.router)
