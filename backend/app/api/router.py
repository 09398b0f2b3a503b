"""
Main API router.
"""

from fastapi import APIRouter
from app.api import expenses, recurring, generation

api_router = APIRouter()

api_router.include_router(expenses.router)
api_router.include_router(recurring.router)
api_router.include_router(generation.router)
