from battlebeats.models.user import User, UserRole, SubscriptionStatus
from battlebeats.models.genre import Genre, MAX_GENRES, DEFAULT_GENRES
from battlebeats.models.battle import Battle, BattleStatus
from battlebeats.models.track import Track
from battlebeats.models.vote import Vote
from battlebeats.models.referral import Referral, ReferralStatus
from battlebeats.models.content_rating import ContentRating, Rating
from battlebeats.models.admin_settings import AdminSettings, PayoutSchedule
from battlebeats.models.trial_slot import TrialSlot
from battlebeats.models.session import Session
from battlebeats.models.payment import Payment, PaymentStatus
