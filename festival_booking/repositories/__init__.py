from .base import BaseRepository
from .festival_repository import festival_repository, editor_repository
from .zone_repository import zone_repository
from .reservation_repository import reservation_repository
from .invoice_repository import invoice_repository
