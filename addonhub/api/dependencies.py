"""
Request Dependencies
"""
from fastapi import Request
from addonhub.services.engine import AddonEngine


def get_engine(request: Request) -> AddonEngine:
    """Engine created by the application lifespan"""
    return request.app.state.engine
