from .common import ApiResponse, PageMeta
from .user import User, UserSummary
from .warnet import WarnetSummary, WarnetListItem, WarnetDetail, WarnetRules, RuleItem, PcSlot
from .booking import Booking, BookingCreate, BookingCancelResult
from .transaction import Transaction, TransactionResult, TransactionReject, WalletMovement
from .chat import ChatMessage, ChatMessageCreate, Conversation
