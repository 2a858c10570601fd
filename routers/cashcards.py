import logging
from typing import List

from fastapi import APIRouter, Depends, Path, Request, Response

from errors import Conflict, NotFound
from schemas import ID_MAX, CashCardCreate, CashCardRead
from settings import CASHCARDS_PATH
from store import CashCardStore, DuplicateCashCard

logger = logging.getLogger(__name__)

router = APIRouter(prefix=CASHCARDS_PATH, tags=["Cash Cards"])

LOCATION_TEMPLATE = CASHCARDS_PATH + "/{id}"

# ------------- dependencies ---------------

def get_store(request: Request) -> CashCardStore:
    return request.app.state.store

# ------------- handlers ---------------

def read_cash_card(card_id: int = Path(gt=0, le=ID_MAX), store: CashCardStore = Depends(get_store)):
    card = store.get(card_id)
    if card is None:
        logger.info(f"Cash card {card_id} not found")
        raise NotFound(f"Cash card {card_id} not found")
    return card

def list_cash_cards(store: CashCardStore = Depends(get_store)):
    return store.list()

def create_cash_card(card: CashCardCreate, response: Response, store: CashCardStore = Depends(get_store)):
    try:
        saved = store.put(card)
    except DuplicateCashCard as exc:
        raise Conflict(str(exc)) from exc
    location = LOCATION_TEMPLATE.format(id=saved.id)
    logger.info(f"💳 Created cash card {saved.id} at {location}")
    response.headers["Location"] = location
    return saved

# ------------- routing table ---------------

ROUTES = (
    ("GET",  "",            list_cash_cards,  {"response_model": List[CashCardRead]}),
    ("GET",  "/{card_id}",  read_cash_card,   {"response_model": CashCardRead}),
    ("POST", "",            create_cash_card, {"response_model": CashCardRead, "status_code": 201}),
)

for method, path, endpoint, options in ROUTES:
    router.add_api_route(path, endpoint, methods=[method], **options)
