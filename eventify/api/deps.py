from eventify.services.backup_service import BackupService
from eventify.services.booking_service import BookingService
from eventify.services.user_service import UserService


def get_booking_service() -> BookingService:
    return BookingService()


def get_user_service() -> UserService:
    return UserService()


def get_backup_service() -> BackupService:
    return BackupService()
