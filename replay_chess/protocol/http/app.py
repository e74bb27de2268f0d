from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from ...config import Settings
from ...engine.errors import IllegalMoveError, NavigationError, NotationError
from ...engine.fen import board_placement
from ...engine.game import Game
from ...engine.perft import perft as perft_nodes
from ...engine.piece import parse_token
from ...tree.node import Badge, Chessboard
from ...tree.store import TreeStore
from .error import (
    domain_exception_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)

BadgeName = Literal["correct", "wrong"]


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead of the opening tree")
    node_id: Optional[int] = Field(default=None, description="Start on an existing tree node")


class CreateGameResponse(BaseModel):
    game_id: str
    node_id: int
    position: str


class MoveRequest(BaseModel):
    move: str = Field(..., description="Move tokens, e.g. ♙e2♙e4")


class JumpRequest(BaseModel):
    node_id: int


class NodeUpdate(BaseModel):
    badge: Optional[BadgeName] = None
    comment: Optional[str] = None


class NodeView(BaseModel):
    node_id: int
    pieces: str
    badge: BadgeName
    comment: str
    visited: str
    parent_id: Optional[int]
    children: List[str]
    puzzle_id: Optional[int]


class PuzzleView(BaseModel):
    puzzle_id: int
    node_id: int
    due: str
    solved: str
    strikes: int
    finished: bool


class PerftRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="FEN string (default: start position)")
    depth: int = Field(default=1, ge=0)


class GameState(BaseModel):
    game_id: str
    node_id: int
    position: str
    placement: str
    turn: Literal["white", "black"]
    legal_moves: list[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    last_move: Optional[str]
    history: list[str]
    badge: BadgeName
    comment: str
    computer: Optional[Literal["white", "black"]]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings if settings is not None else Settings()
    app = FastAPI(title="Replay Chess API", version="0.1.0")

    logging.basicConfig(level=settings.log_level)

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    for err_cls in (NotationError, IllegalMoveError, NavigationError):
        app.add_exception_handler(err_cls, domain_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    # One tree shared by every session
    store = InMemorySessionStore(TreeStore(), strike_limit=settings.strike_limit)
    app.state.sessions = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        req = req or CreateGameRequest()
        if req.fen is not None and req.node_id is not None:
            raise HTTPException(status_code=400, detail="give either fen or node_id, not both")
        if req.fen is not None:
            game = Game.from_fen(req.fen, store.tree, strike_limit=settings.strike_limit)
        elif req.node_id is not None:
            game = Game(store.tree, _require_node(store.tree, req.node_id), strike_limit=settings.strike_limit)
        else:
            game = Game.new(store.tree, strike_limit=settings.strike_limit)
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id, "node_id": game.board.id})
        return CreateGameResponse(
            game_id=game_id, node_id=game.board.id, position=game.position.text(game.turn)
        )

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_game(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        game.play(game.find_move(req.move))
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/forward", response_model=GameState)
    async def forward(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.forward()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/backward", response_model=GameState)
    async def backward(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        game.backward()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/jump", response_model=GameState)
    async def jump(game_id: str, req: JumpRequest) -> GameState:
        game = _require_game(store, game_id)
        game.jump(_require_node(store.tree, req.node_id))
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/computer", response_model=GameState)
    async def computer(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        if not game.computer_move():
            raise HTTPException(status_code=409, detail="no recorded continuation")
        return _state(game_id, game)

    @app.patch("/api/nodes/{node_id}", response_model=NodeView)
    async def update_node(node_id: int, req: NodeUpdate) -> NodeView:
        node = _require_node(store.tree, node_id)
        if req.badge is not None:
            node.badge = Badge[req.badge.upper()]
        if req.comment is not None:
            node.comment = req.comment
        return _node_view(node)

    @app.post("/api/nodes/{node_id}/puzzle", response_model=PuzzleView)
    async def create_puzzle(node_id: int) -> PuzzleView:
        node = _require_node(store.tree, node_id)
        if node.puzzle is not None:
            raise HTTPException(status_code=409, detail="node already belongs to a puzzle")
        puzzle = store.tree.create_puzzle(node)
        return PuzzleView(
            puzzle_id=puzzle.id,
            node_id=puzzle.board,
            due=puzzle.due.isoformat(),
            solved=puzzle.solved.isoformat(),
            strikes=puzzle.strikes,
            finished=puzzle.finished,
        )

    @app.get("/api/search", response_model=List[NodeView])
    async def search(
        comment: str = "",
        tokens: Optional[List[str]] = Query(default=None),
    ) -> List[NodeView]:
        wanted = [parse_token(t, lenient=True).token for t in tokens or ()]
        return [_node_view(node) for node in store.tree.search(comment, wanted)]

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> Dict[str, int]:
        if req.depth > settings.max_perft_depth:
            raise HTTPException(
                status_code=400, detail=f"depth must be <= {settings.max_perft_depth}"
            )
        # a private tree keeps perft nodes out of the shared one
        game = Game.from_fen(req.fen) if req.fen else Game.new()
        return {"nodes": perft_nodes(game, req.depth), "depth": req.depth}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _require_node(tree: TreeStore, node_id: int) -> Chessboard:
    node = tree.get(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="node not found")
    return node


def _node_view(node: Chessboard) -> NodeView:
    return NodeView(
        node_id=node.id,
        pieces=node.pieces,
        badge=node.badge.name.lower(),  # type: ignore[arg-type]
        comment=node.comment,
        visited=node.visited.isoformat(),
        parent_id=node.parent,
        children=sorted(node.children),
        puzzle_id=node.puzzle,
    )


def _state(game_id: str, game: Game) -> GameState:
    board = game.board
    return GameState(
        game_id=game_id,
        node_id=board.id,
        position=game.position.text(game.turn),
        placement=board_placement(game.position),
        turn=game.turn.value,
        legal_moves=[v.to_text() for m in game.moves for v in m.promotions()],
        in_check=game.in_check,
        checkmate=game.checkmate,
        stalemate=game.stalemate,
        last_move=game.last_move.to_text() if game.last_move else None,
        history=[b.pieces for b in game.store.path(board) if b.parent is not None],
        badge=board.badge.name.lower(),  # type: ignore[arg-type]
        comment=board.comment,
        computer=game.computer.value if game.computer else None,
    )


# Default app for non-factory servers
app = create_app()
