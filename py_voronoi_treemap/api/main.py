"""FastAPI main application."""

import uuid
from typing import Any, Dict, List, Optional, Tuple

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..config import TreemapOptions, settings
from ..core.clip_shapes import ClipShape, generate_clip_polygon
from ..core.errors import VoronoiError
from ..core.fallback_treemap import squarify
from ..core.hierarchy import HierarchyNode
from ..core.voronoi_treemap import VoronoiTreemap
from ..core.weighted_voronoi import WeightedVoronoi
from ..utils.logging import configure_logging
from ..utils.random import make_prng

configure_logging(settings)

logger = structlog.get_logger()

app = FastAPI(
    title="Voronoi Treemap API",
    description="Weighted Voronoi diagrams and Voronoi treemaps",
    version=__version__,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class Site(BaseModel):
    """A weighted site."""

    x: float
    y: float
    weight: float = Field(0.0, description="Power distance offset of the site")


class VoronoiRequest(BaseModel):
    """Request for a clipped power diagram. Give at most one boundary."""

    sites: List[Site] = Field(..., min_length=1)
    clip: Optional[List[Tuple[float, float]]] = Field(None, description="Clip polygon")
    extent: Optional[Tuple[Tuple[float, float], Tuple[float, float]]] = Field(
        None, description="[[x0, y0], [x1, y1]] rectangle")
    size: Optional[Tuple[float, float]] = Field(None, description="[width, height] rectangle")


class CellResponse(BaseModel):
    points: List[Tuple[float, float]]
    site_index: int
    neighbours: List[int]


class VoronoiResponse(BaseModel):
    polygons: List[CellResponse]


class TreemapRequest(BaseModel):
    """Request for a treemap of a nested ``{name, value, children}`` hierarchy."""

    hierarchy: Dict[str, Any]
    width: float = Field(800, gt=0, le=10000, description="Canvas width")
    height: float = Field(600, gt=0, le=10000, description="Canvas height")
    shape: Optional[ClipShape] = Field(None, description="Boundary shape")
    padding: Optional[float] = Field(None, ge=0, description="Inset of the boundary shape")
    seed: Optional[str] = Field(None, description="Seed for reproducible layouts")
    convergence_ratio: float = Field(0.01, gt=0, le=1)
    max_iteration_count: Optional[int] = Field(None, ge=0)
    min_weight_ratio: float = Field(0.01, ge=0, le=1)


class TreemapCell(BaseModel):
    name: Optional[str] = None
    depth: int
    value: float
    polygon: List[Tuple[float, float]]


class TreemapResponse(BaseModel):
    layout: str
    error: Optional[str] = None
    cells: List[TreemapCell]


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Voronoi Treemap API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/voronoi", response_model=VoronoiResponse)
def compute_voronoi(request: VoronoiRequest):
    """Compute the power diagram of weighted sites clipped to a boundary."""
    log = logger.bind(run_id=str(uuid.uuid4()))
    data = [{"x": s.x, "y": s.y, "weight": s.weight, "index": i}
            for i, s in enumerate(request.sites)]

    try:
        voronoi = WeightedVoronoi(clip=request.clip, extent=request.extent,
                                  size=request.size, log=log)
        polygons = voronoi.compute(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except VoronoiError as e:
        log.warning("Voronoi computation failed", error=type(e).__name__, detail=str(e))
        raise HTTPException(status_code=422, detail=f"{type(e).__name__}: {e}")

    return VoronoiResponse(polygons=[
        CellResponse(
            points=[(float(x), float(y)) for x, y in polygon],
            site_index=polygon.site["index"],
            neighbours=sorted(n["index"] for n in polygon.neighbours),
        )
        for polygon in polygons
    ])


def _treemap_cells(root: HierarchyNode) -> List[TreemapCell]:
    return [
        TreemapCell(
            name=node.name,
            depth=node.depth,
            value=node.value,
            polygon=[(float(x), float(y)) for x, y in node.polygon or []],
        )
        for node in root.descendants()
    ]


@app.post("/treemap", response_model=TreemapResponse)
def compute_treemap(request: TreemapRequest):
    """Lay out a hierarchy as a Voronoi treemap, falling back to rectangles."""
    log = logger.bind(run_id=str(uuid.uuid4()))

    root = HierarchyNode.from_dict(request.hierarchy).sum().sort()
    if root.height > settings.max_hierarchy_depth:
        raise HTTPException(status_code=400,
                            detail=f"Hierarchy deeper than {settings.max_hierarchy_depth}")
    if len(root.leaves()) > settings.max_cells:
        raise HTTPException(status_code=400,
                            detail=f"Hierarchy has more than {settings.max_cells} leaves")
    for node in root.descendants():
        if node.children and not node.value > 0:
            raise HTTPException(
                status_code=400,
                detail=f"Hierarchy group {node.name or '(unnamed)'!r} has no positive values")

    options = TreemapOptions(
        convergence_ratio=request.convergence_ratio,
        max_iteration_count=(request.max_iteration_count
                             if request.max_iteration_count is not None
                             else settings.max_iterations),
        min_weight_ratio=request.min_weight_ratio,
        max_depth=settings.max_hierarchy_depth,
    )
    shape = ClipShape(request.shape or settings.default_clip_shape)
    padding = request.padding if request.padding is not None else settings.default_clip_padding

    try:
        clip = generate_clip_polygon(request.width, request.height, shape, padding)
        treemap = VoronoiTreemap(clip=clip, options=options,
                                 prng=make_prng(request.seed), log=log)
        treemap.build(root)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except VoronoiError as e:
        log.warning("Voronoi treemap failed, using squarified layout",
                    error=type(e).__name__, detail=str(e))
        squarify(root, request.width, request.height)
        return TreemapResponse(layout="fallback", error=type(e).__name__,
                               cells=_treemap_cells(root))

    log.info("Treemap computed", leaves=len(root.leaves()), shape=shape.value)
    return TreemapResponse(layout="voronoi", cells=_treemap_cells(root))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
