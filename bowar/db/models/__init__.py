from .warnet import Warnet
from .rule import Rule
from .user import User, UserRole
from .booking import Booking, BookingStatus, PaymentStatus, PaymentMethod
from .pc import Pc, PcStatus
from .cafe_wallet import CafeWallet
from .bowar_transaction import BowarTransaction, TransactionType, TransactionStatus
from .chat_message import ChatMessage, SenderType
from .schema_version import SchemaVersion
