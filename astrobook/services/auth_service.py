from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..models.user import User
from ..core.exceptions import ConflictError, InternalError, MissingFieldError
from ..core.security import (
    verify_password, get_password_hash, create_access_token,
    InvalidCredentialsError
)
from ..schemas.auth import UserSignup, UserLogin, UserResponse, AuthResponse

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db
    
    def register_user(self, user_data: UserSignup) -> AuthResponse:
        """Create a user and issue their first access token."""
        fields = {
            "username": user_data.username,
            "email": user_data.email,
            "password": user_data.password,
            "zodiacSign": user_data.zodiac_sign,
        }
        missing = [name for name, value in fields.items() if not value]
        if missing:
            logger.info(f"Signup rejected, missing fields: {missing}")
            raise MissingFieldError()
        
        try:
            existing_user = self.db.query(User).filter(
                or_(User.email == user_data.email, User.username == user_data.username)
            ).first()
            
            if existing_user:
                logger.info(
                    f"Signup rejected, user already exists: "
                    f"username={user_data.username} email={user_data.email}"
                )
                raise ConflictError()
            
            new_user = User(
                username=user_data.username,
                email=user_data.email,
                password_hash=get_password_hash(user_data.password),
                zodiac_sign=user_data.zodiac_sign,
            )
            
            self.db.add(new_user)
            self.db.commit()
            self.db.refresh(new_user)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same username/email
            self.db.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Error creating user", error=str(e))
        
        logger.info(f"User created: username={new_user.username} id={new_user.id}")
        
        return AuthResponse(
            message="User created successfully",
            token=create_access_token(new_user.id, new_user.username),
            user=UserResponse.model_validate(new_user),
        )
    
    def authenticate_user(self, login_data: UserLogin) -> AuthResponse:
        """Check a username/password pair and issue an access token."""
        if not login_data.username or not login_data.password:
            raise MissingFieldError("Username and password are required")
        
        try:
            user = self.db.query(User).filter(
                User.username == login_data.username
            ).first()
        except SQLAlchemyError as e:
            raise InternalError("Error logging in", error=str(e))
        
        # Unknown user and wrong password get the same response
        if not user:
            logger.info(f"Login failed, unknown user: {login_data.username}")
            raise InvalidCredentialsError()
        
        if not verify_password(login_data.password, user.password_hash):
            logger.info(f"Login failed, wrong password for user: {login_data.username}")
            raise InvalidCredentialsError()
        
        logger.info(f"User logged in: {user.username}")
        
        return AuthResponse(
            message="Login successful",
            token=create_access_token(user.id, user.username),
            user=UserResponse.model_validate(user),
        )
