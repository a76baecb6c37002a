from fastapi import APIRouter

# Create router at module level with the correct prefix
router = APIRouter(prefix="/api/upload", tags=["image-upload"])

# Import routes to register them
from .routes_imageupload import *  # This will register the routes with our router
