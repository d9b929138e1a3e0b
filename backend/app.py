from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
import os
import logging
from dotenv import load_dotenv

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from services.llm_service import LLMService, GraphGenerationError
from services.graph_session import (
    GraphSession, GraphSessionError, RecordNotFoundError, DuplicateRecordError
)
from services.cascade_delete import CascadeMode
from translators.reactflow_translator import ReactFlowTranslator
from schemas.process_graph import (
    Record, LayoutDirection, DeletionSet, RecordUpdate, ConnectionsUpdate, NodeInspection
)

def get_user_friendly_error(error_message: str) -> str:
    """Convert technical generation errors to user-friendly ones."""
    error_lower = error_message.lower()

    if "no json block" in error_lower:
        return "The generator did not return a graph. Please rephrase the request and try again."

    if "could not parse json" in error_lower:
        return "The generated graph was malformed. Please try again."

    if "invalid shape" in error_lower:
        return "The generated graph is missing required fields (every node needs an id). Please try again."

    if "request failed" in error_lower:
        return "The graph generator is unavailable right now. Please try again later."

    # Default: return original with context
    return f"Graph generation failed: {error_message}"

# Load environment variables
load_dotenv()

# Initialize services
llm_service = LLMService()
reactflow_translator = ReactFlowTranslator()
graph_session = GraphSession(
    direction=LayoutDirection(os.getenv("GRAPH_LAYOUT_DIRECTION", "TB").upper()),
    cascade_mode=CascadeMode(os.getenv("CASCADE_DELETE_MODE", CascadeMode.SINGLE_PASS.value).lower()),
)

logger.info(
    f"Graph session ready: direction={graph_session.direction.value}, "
    f"cascade mode={graph_session.cascade_mode.value}"
)

app = FastAPI(
    title="AI Process Graph Mapper",
    version="1.0.0",
)

# Configure CORS - Simplified for local use
allowed_origins = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:3000",
]

logger.info(f"CORS enabled for origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)

# Add validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": f"Validation error: {exc.errors()}"})


# ============================================================================
# REQUEST MODELS
# ============================================================================

class GenerateGraphRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    direction: Optional[LayoutDirection] = None

class LoadGraphRequest(BaseModel):
    nodes: List[Record] = Field(default_factory=list)
    direction: Optional[LayoutDirection] = None

class LayoutRequest(BaseModel):
    direction: LayoutDirection

class DeleteNodeResponse(BaseModel):
    deleted: DeletionSet
    graph: Dict[str, Any]


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def current_graph() -> Dict[str, Any]:
    return reactflow_translator.translate(graph_session.graph)

def session_error_to_http(error: GraphSessionError) -> HTTPException:
    if isinstance(error, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DuplicateRecordError):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


# ============================================================================
# CORE GRAPH ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {"message": "AI Process Graph Mapper API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.post("/generate-graph")
async def generate_graph(request: GenerateGraphRequest):
    """Generate a process graph from a prompt and lay it out"""
    try:
        logger.info("Generating graph from prompt")
        records = await llm_service.generate_records(request.prompt)
        graph_session.load(records, request.direction)
        logger.info(f"Graph generation successful: {len(records)} records")
        return current_graph()

    except GraphGenerationError as e:
        logger.warning(f"Graph generation failed: {e}")
        raise HTTPException(status_code=502, detail=get_user_friendly_error(str(e)))
    except Exception as e:
        logger.error(f"Error generating graph: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Graph generation failed: {str(e)}")

@app.get("/graph")
async def get_graph():
    """Current positioned graph"""
    return current_graph()

@app.post("/graph")
async def load_graph(request: LoadGraphRequest):
    """Load (or reset to) a complete record list"""
    graph_session.load(request.nodes, request.direction)
    return current_graph()

@app.post("/graph/layout")
async def change_layout(request: LayoutRequest):
    """Re-run the layout in another direction"""
    graph_session.relayout(request.direction)
    return current_graph()

@app.get("/graph/records")
async def get_records():
    """Record list in the generator's own keys"""
    return {"nodes": [record.to_wire() for record in graph_session.records]}


# ============================================================================
# NODE ENDPOINTS
# ============================================================================

@app.post("/graph/nodes")
async def add_node(record: Record):
    """Add a record"""
    try:
        graph_session.add_record(record)
        return current_graph()
    except GraphSessionError as e:
        raise session_error_to_http(e)

@app.patch("/graph/nodes/{node_id}")
async def update_node(node_id: str, updates: RecordUpdate):
    """Update record fields by id"""
    try:
        graph_session.update_record(node_id, updates.model_dump(exclude_unset=True))
        return current_graph()
    except GraphSessionError as e:
        raise session_error_to_http(e)

@app.put("/graph/nodes/{node_id}/connections")
async def update_node_connections(node_id: str, connections: ConnectionsUpdate):
    """Replace the inputs and/or outputs of a record"""
    try:
        graph_session.update_connections(node_id, connections.inputs, connections.outputs)
        return current_graph()
    except GraphSessionError as e:
        raise session_error_to_http(e)

@app.get("/graph/nodes/{node_id}", response_model=NodeInspection)
async def inspect_node(node_id: str):
    """Label, description and dependencies of a node"""
    try:
        return graph_session.inspect(node_id)
    except GraphSessionError as e:
        raise session_error_to_http(e)

@app.get("/graph/nodes/{node_id}/dependencies", response_model=List[str])
async def get_node_dependencies(node_id: str):
    """Transitive ancestors of a node"""
    return graph_session.dependencies(node_id)

@app.get("/graph/nodes/{node_id}/deletion-preview", response_model=DeletionSet)
async def preview_node_deletion(node_id: str):
    """What a cascade delete would remove, without applying it"""
    return graph_session.preview_deletion(node_id)

@app.delete("/graph/nodes/{node_id}", response_model=DeleteNodeResponse)
async def delete_node(node_id: str):
    """Cascade-delete a node; unknown ids are a no-op"""
    deleted = graph_session.delete_node(node_id)
    return DeleteNodeResponse(deleted=deleted, graph=current_graph())


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
