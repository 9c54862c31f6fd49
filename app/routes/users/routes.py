import logging
from fastapi import APIRouter, HTTPException, Path, Depends, Response
from fastapi.security import OAuth2PasswordRequestForm

from db.repositories import UserRepository, get_user_repository
from models.roommate import RoommateProfile
from models.user import User, UserCreate, UserProfileUpdate, PreferencesUpdate, BanRequest, AuthenticatedUser
from routes.users.users_response_schemas import UserResponse, LoginRequest, LoginResponse, UpdateResponse
from services.exceptions import DuplicateEmailError, InvalidObjectIdError
from utils.jwt_utils import create_access_token, get_current_user, require_admin, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,   # Set True behind HTTPS
        samesite="lax"
    )


def _authenticate(users: UserRepository, email: str, password: str) -> dict:
    user_doc = users.find_by_email(email)
    if not user_doc or not verify_password(password, user_doc.get("password", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if user_doc.get("isBanned"):
        raise HTTPException(status_code=403, detail={"error": "Account has been banned", "reason": user_doc.get("banReason")})
    return user_doc


def _updated(update, message: str) -> UpdateResponse:
    """Run a repository update call and wrap the returned document."""
    try:
        user_doc = update()
    except InvalidObjectIdError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    if not user_doc:
        raise HTTPException(status_code=404, detail="User not found")
    return UpdateResponse(message=message, user=UserResponse.from_document(user_doc))


@router.post("/register", response_model=LoginResponse, status_code=201)
def register_user(request: UserCreate, response: Response, users: UserRepository = Depends(get_user_repository)):
    if users.find_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=request.email,
        password=hash_password(request.password),
        name=request.name,
        role=request.role,
    )
    try:
        user_id = users.create(user)
    except DuplicateEmailError:
        # lost a race with a concurrent signup; the unique index caught it
        raise HTTPException(status_code=400, detail="Email already registered")
    logger.info("Registered user %s", user_id)

    token = create_access_token(user_id, user.email, user.role)
    _set_auth_cookie(response, token)

    user_doc = users.find_by_id(user_id)
    return LoginResponse(token=token, user=UserResponse.from_document(user_doc))


@router.post("/login", response_model=LoginResponse)
def login_user(request: LoginRequest, response: Response, users: UserRepository = Depends(get_user_repository)):
    user_doc = _authenticate(users, request.email, request.password)

    token = create_access_token(str(user_doc["_id"]), user_doc["email"], user_doc.get("role", "tenant"))
    _set_auth_cookie(response, token)
    return LoginResponse(token=token, user=UserResponse.from_document(user_doc))


@router.post("/token")
def login_token(form_data: OAuth2PasswordRequestForm = Depends(), users: UserRepository = Depends(get_user_repository)):
    user_doc = _authenticate(users, form_data.username, form_data.password)
    token = create_access_token(str(user_doc["_id"]), user_doc["email"], user_doc.get("role", "tenant"))
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
def logout_user(response: Response):
    response.delete_cookie("access_token")
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
def get_me(current_user: AuthenticatedUser = Depends(get_current_user), users: UserRepository = Depends(get_user_repository)):
    user_doc = users.find_by_id(current_user.id)
    if not user_doc:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.from_document(user_doc)


@router.put("/profile", response_model=UpdateResponse)
def update_profile(
    update: UserProfileUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    # Only whitelisted fields ever reach $set
    fields = update.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    return _updated(lambda: users.update_fields(current_user.id, fields), "Profile updated successfully")


@router.put("/roommate-profile", response_model=UpdateResponse)
def update_roommate_profile(
    profile: RoommateProfile,
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    return _updated(lambda: users.set_roommate_profile(current_user.id, profile.to_document()),
                    "Roommate profile updated successfully")


@router.put("/preferences", response_model=UpdateResponse)
def update_preferences(
    update: PreferencesUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    fields = {f"preferences.{k}": v for k, v in update.model_dump(exclude_none=True).items()}
    if not fields:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    return _updated(lambda: users.update_fields(current_user.id, fields), "Preferences updated successfully")


@router.post("/ban/{user_id}", response_model=UpdateResponse)
def ban_user(
    request: BanRequest,
    user_id: str = Path(..., description="The ID of the user to ban"),
    admin: AuthenticatedUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Admins cannot ban themselves")
    result = _updated(lambda: users.set_ban(user_id, True, request.reason), "User banned successfully")
    logger.info("User %s banned by %s", user_id, admin.id)
    return result


@router.post("/unban/{user_id}", response_model=UpdateResponse)
def unban_user(
    user_id: str = Path(..., description="The ID of the user to unban"),
    admin: AuthenticatedUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    result = _updated(lambda: users.set_ban(user_id, False), "User unbanned successfully")
    logger.info("User %s unbanned by %s", user_id, admin.id)
    return result


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str = Path(..., description="User ID"), users: UserRepository = Depends(get_user_repository)):
    try:
        user_doc = users.find_by_id(user_id)
    except InvalidObjectIdError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    if not user_doc:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.from_document(user_doc)
