import logging

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db
from errors import NotFoundError, StoreError, Unauthenticated, ValidationError
from filters import parse_filters
from schemas import (
    AccountIn,
    AccountListOut,
    AccountOut,
    DashboardOut,
    LoginIn,
    PaginationOut,
    RegisterIn,
    UserOut,
)
from security import Identity, current_identity, issue_token
from services import AccountService, DashboardService, UserService

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Accounts Tracker")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    content: dict[str, object] = {"message": "Server error"}
    if get_settings().debug:
        content["debug"] = repr(exc.__cause__ or exc)
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(RequestValidationError)
def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors[".".join(loc) or "body"] = error.get("msg", "Invalid value")
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request", "errors": errors}},
    )


def validation_failed(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=400, detail={"message": exc.message, "errors": exc.errors}
    )


def account_out(account) -> AccountOut:
    return AccountOut.model_validate(account)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/auth/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterIn, db: Session = Depends(get_db)):
    try:
        user = UserService(db).register(data)
    except ValidationError as exc:
        raise validation_failed(exc) from exc
    token = issue_token(Identity(owner_id=user.id, handle=user.username))
    return {
        "message": "User created successfully",
        "token": token,
        "user": UserOut.model_validate(user),
    }


@app.post("/api/auth/login")
def login(data: LoginIn, db: Session = Depends(get_db)):
    try:
        user = UserService(db).authenticate(data.email, data.password)
    except ValidationError as exc:
        raise validation_failed(exc) from exc
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=401,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    token = issue_token(Identity(owner_id=user.id, handle=user.username))
    return {
        "message": "Login successful",
        "token": token,
        "user": UserOut.model_validate(user),
    }


@app.get("/api/accounts/dashboard", response_model=DashboardOut)
def dashboard(
    identity: Identity = Depends(current_identity), db: Session = Depends(get_db)
):
    service = DashboardService(db, identity.owner_id)
    return DashboardOut(
        summary=service.summarize(),
        recent_accounts=[account_out(a) for a in service.recent()],
        overdue_accounts=[account_out(a) for a in service.overdue()],
    )


@app.get("/api/accounts", response_model=AccountListOut)
def list_accounts(
    request: Request,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    params = request.query_params
    page_size = params.get("page_size") or params.get("limit")
    try:
        filters = parse_filters(
            type_value=params.get("type"),
            status_value=params.get("status"),
            query=params.get("search"),
            page=params.get("page", "1"),
            page_size=page_size or settings.default_page_size,
        )
    except ValidationError as exc:
        raise validation_failed(exc) from exc
    filters.page_size = min(filters.page_size, settings.max_page_size)

    result = AccountService(db, identity.owner_id).list(filters)
    return AccountListOut(
        accounts=[account_out(a) for a in result.accounts],
        pagination=PaginationOut(
            page=result.page,
            page_size=result.page_size,
            total=result.total,
            pages=result.pages,
        ),
    )


@app.post("/api/accounts", status_code=status.HTTP_201_CREATED)
def create_account(
    data: AccountIn,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    try:
        account = AccountService(db, identity.owner_id).create(data)
    except ValidationError as exc:
        raise validation_failed(exc) from exc
    return {"message": "Account created successfully", "account": account_out(account)}


@app.get("/api/accounts/{account_id}")
def get_account(
    account_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    try:
        account = AccountService(db, identity.owner_id).get(account_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"account": account_out(account)}


@app.put("/api/accounts/{account_id}")
def update_account(
    account_id: int,
    data: AccountIn,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    try:
        account = AccountService(db, identity.owner_id).update(account_id, data)
    except ValidationError as exc:
        raise validation_failed(exc) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Account updated successfully", "account": account_out(account)}


@app.post("/api/accounts/{account_id}/pay")
def mark_account_paid(
    account_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    try:
        account = AccountService(db, identity.owner_id).mark_paid(account_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Account marked as paid", "account": account_out(account)}


@app.delete("/api/accounts/{account_id}")
def delete_account(
    account_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    try:
        AccountService(db, identity.owner_id).delete(account_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Account deleted successfully"}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
