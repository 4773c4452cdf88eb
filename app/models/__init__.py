from app.models.user import User
from app.models.certificate import Certificate

__all__ = ['User', 'Certificate']
