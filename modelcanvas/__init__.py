"""
modelcanvas Application Package

Directory Structure:
├── domain/            # Records, errors, events, filters and layout strategies
├── stores/            # In-memory stores, one writer per collection
│   └── cascade.py     # Entity removal fan-out to dependent stores
├── canvas/            # Node/edge projection and renderer change handling
├── application/       # Designer session, project import/export, audit handlers
├── routers/           # FastAPI route handlers
├── schemas/           # Pydantic models
│   ├── api_schemas.py      # HTTP request/response structures
│   └── project_schemas.py  # Exported/imported project document
└── config.py          # Application configuration

Model Types Clarification:
1. **API Schemas** (modelcanvas.schemas.api_schemas): Pydantic models for HTTP requests/responses
2. **Project Documents** (modelcanvas.schemas.project_schemas): camelCase JSON the designer
   exports and imports
3. **Domain Records** (modelcanvas.domain.entities): snake_case TypedDicts held by the stores

The stores are the only writers of designer state. Everything else either reads
them or calls their operations and then lets the designer session settle the
change (history snapshot, layout cleanup, canvas sync).
"""
