from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..models import AuthUser, AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

GUEST_NAMES = ("guest", "guests")


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	username: str


_users: Dict[str, str] = {}


def _ensure_seed_user() -> None:
	username = settings.seed_username
	password = settings.seed_password_plain
	if username and password and username not in _users:
		# bcrypt only looks at the first 72 bytes
		password_bytes = password.encode('utf-8')[:72]
		_users[username] = pwd_context.hash(password_bytes.decode('utf-8', errors='ignore'))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
	# Guests get a throwaway learner identity so sessions never collide
	if username.lower() in GUEST_NAMES:
		return User(username=f"guest-{uuid.uuid4().hex[:8]}")
	user_row = db.query(AuthUser).filter(AuthUser.username == username).first()
	if user_row and verify_password(password, user_row.password_hash):
		return User(username=username)
	_ensure_seed_user()
	hashed = _users.get(username)
	if hashed and verify_password(password, hashed):
		return User(username=username)
	return None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
	to_encode.update({"exp": datetime.now(timezone.utc) + delta})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	user = authenticate_user(db, form_data.username, form_data.password)
	if not user:
		raise HTTPException(status_code=401, detail="Incorrect username or password")
	session_id = uuid.uuid4().hex
	access_token = create_access_token({"sub": user.username, "jti": session_id})
	db.merge(AuthSession(session_id=session_id, username=user.username))
	db.commit()
	logger.info("Issued token for %s", user.username)
	return Token(access_token=access_token)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		raise credentials_exception
	username: str | None = payload.get("sub")
	jti: str | None = payload.get("jti")
	if username is None or jti is None:
		raise credentials_exception
	# Revoked or purged sessions no longer authenticate
	row = db.get(AuthSession, jti)
	if not row or row.username != username:
		raise credentials_exception
	row.last_activity_at = datetime.utcnow()
	db.commit()
	return User(username=username)


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user


class RegisterRequest(BaseModel):
	username: str
	password: str
	email: Optional[str] = None


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	username = (req.username or "").strip()
	password = req.password or ""
	if not username or not password:
		raise HTTPException(status_code=400, detail="username and password are required")
	if len(username) < 3 or len(username) > 128:
		raise HTTPException(status_code=400, detail="username must be 3-128 characters")
	if username.lower() in GUEST_NAMES:
		raise HTTPException(status_code=400, detail="username is reserved")
	existing = db.query(AuthUser).filter(AuthUser.username == username).first()
	if existing:
		raise HTTPException(status_code=409, detail="username already exists")
	email = (req.email or "").strip() or None
	db.add(AuthUser(username=username, password_hash=pwd_context.hash(password), email=email))
	db.commit()
	return {"ok": True}
