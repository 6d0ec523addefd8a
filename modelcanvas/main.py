from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modelcanvas.config import settings
from modelcanvas.routers import health, project, entities, relations, services, connections, history, canvas
from modelcanvas.domain.errors import NotFoundError, ValidationError, ConflictError
from modelcanvas.application.event_handlers import register_event_handlers

app = FastAPI(
    title="modelcanvas API",
    description="Session API for the visual data-model and service-topology designer",
    version=settings.VERSION,
)

# Register domain event handlers on startup
@app.on_event("startup")
async def startup_event():
    register_event_handlers()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)


# Domain error handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})

# Include routers
app.include_router(health.router, tags=["Health"])  # Health check endpoints first
app.include_router(project.router, tags=["Project"])
app.include_router(entities.router, tags=["Entities"])
app.include_router(relations.router, tags=["Relations"])
app.include_router(services.router, tags=["Services"])
app.include_router(connections.router, tags=["Connections"])
app.include_router(history.router, tags=["History"])
app.include_router(canvas.router, tags=["Canvas"])

@app.get("/")
async def root():
    return {"message": "Welcome to modelcanvas API. See /docs for API documentation"}
