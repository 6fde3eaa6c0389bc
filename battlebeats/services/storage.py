import calendar
import logging
import secrets
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from battlebeats.extensions.extension import db
from battlebeats.models.admin_settings import AdminSettings, PayoutSchedule
from battlebeats.models.battle import Battle, BattleStatus
from battlebeats.models.content_rating import ContentRating, Rating
from battlebeats.models.genre import Genre, MAX_GENRES
from battlebeats.models.payment import Payment, PaymentStatus
from battlebeats.models.referral import Referral, ReferralStatus
from battlebeats.models.session import Session
from battlebeats.models.track import Track
from battlebeats.models.trial_slot import TrialSlot
from battlebeats.models.user import User, UserRole, SubscriptionStatus
from battlebeats.models.vote import Vote
from battlebeats.utils.exceptions import (
    ConflictError,
    DuplicateVoteError,
    GenreLimitError,
    NoTrialSlotsAvailableError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TRIAL_PERIOD_MONTHS = 1
GENRE_CREATE_ATTEMPTS = 3

USER_MUTABLE_FIELDS = ('email', 'first_name', 'last_name', 'profile_image_url', 'username', 'google_id')


def add_months(value, months):
    """Calendar-month arithmetic, clamping the day to the target month's length"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _as_uuid(value):
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f'Invalid id: {value}')


class DatabaseStorage:
    """Every read and write the API performs goes through here."""

    # User operations

    def get_user(self, user_id):
        return db.session.get(User, _as_uuid(user_id))

    def get_user_by_google_id(self, google_id):
        return User.query.filter_by(google_id=google_id).first()

    def get_user_by_username(self, username):
        return User.query.filter_by(username=username).first()

    def get_user_by_stripe_customer(self, customer_id):
        if not customer_id:
            return None
        return User.query.filter_by(stripe_customer_id=customer_id).first()

    def upsert_user(self, user_data):
        """Insert a user, or update its mutable fields when the id already exists."""
        user_id = _as_uuid(user_data.get('id'))
        user = db.session.get(User, user_id) if user_id else None

        if user is None:
            user = User(id=user_id or uuid.uuid4())
            db.session.add(user)

        for field in USER_MUTABLE_FIELDS:
            if field in user_data:
                setattr(user, field, user_data[field])
        user.updated_at = datetime.utcnow()

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("User upsert conflicted on a unique field (email=%s)", user_data.get('email'))
            raise ConflictError('A user with this email or username already exists')
        return user

    def update_user_role(self, user_id, role):
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError('User not found')
        user.role = role if isinstance(role, UserRole) else UserRole(role)
        db.session.commit()
        return user

    def update_user_stripe_info(self, user_id, customer_id, subscription_id):
        """Store the payment provider references; subscription status is left alone."""
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError('User not found')
        user.stripe_customer_id = customer_id
        user.stripe_subscription_id = subscription_id
        db.session.commit()
        return user

    def update_user_subscription_status(self, user_id, status):
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError('User not found')
        user.subscription_status = status if isinstance(status, SubscriptionStatus) else SubscriptionStatus(status)
        db.session.commit()
        return user

    # Genre operations

    def get_genres(self):
        return Genre.query.order_by(Genre.name.asc()).all()

    def get_genre(self, genre_id):
        return db.session.get(Genre, _as_uuid(genre_id))

    def create_genre(self, name, max_trial_slots=None):
        """
        Take the next free genre slot. Concurrent creates that pick the same
        slot collide on its unique constraint; the loser re-reads and either
        takes the following slot or hits the cap.
        """
        for _ in range(GENRE_CREATE_ATTEMPTS):
            if Genre.query.count() >= MAX_GENRES:
                logger.info("Rejected genre %r: %d genres already exist", name, MAX_GENRES)
                raise GenreLimitError()
            if Genre.query.filter_by(name=name).first():
                raise ConflictError(f'Genre {name} already exists')

            next_slot = db.session.query(func.coalesce(func.max(Genre.slot), 0)).scalar() + 1
            genre = Genre(name=name, slot=next_slot)
            if max_trial_slots is not None:
                genre.max_trial_slots = max_trial_slots
            db.session.add(genre)
            try:
                db.session.commit()
                return genre
            except IntegrityError:
                db.session.rollback()
                logger.info("Genre slot %d taken concurrently, retrying %r", next_slot, name)

        raise ConflictError(f'Could not create genre {name}, please retry')

    def update_trial_slots(self, genre_id, increment):
        """Shift filled_trial_slots by `increment` in a single UPDATE statement."""
        try:
            db.session.execute(
                update(Genre)
                .where(Genre.id == _as_uuid(genre_id))
                .values(filled_trial_slots=Genre.filled_trial_slots + increment)
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ValidationError('Trial slot count must stay between 0 and the genre capacity')

    # Battle operations

    def get_battles(self, genre_id=None, status=None):
        query = Battle.query
        if genre_id:
            query = query.filter(Battle.genre_id == _as_uuid(genre_id))
        if status:
            query = query.filter(Battle.status == BattleStatus(status))
        return query.order_by(Battle.created_at.desc()).all()

    def get_battle(self, battle_id):
        return db.session.get(Battle, _as_uuid(battle_id))

    def create_battle(self, title, ends_at, created_by_id, genre_id=None, description=None,
                      prize_pool=None, status=None):
        if genre_id and not self.get_genre(genre_id):
            raise NotFoundError('Genre not found')

        battle = Battle(
            title=title,
            description=description,
            genre_id=_as_uuid(genre_id),
            created_by_id=_as_uuid(created_by_id),
            ends_at=ends_at,
            prize_pool=Decimal(str(prize_pool)) if prize_pool is not None else Decimal('0'),
            status=BattleStatus(status) if status else BattleStatus.active,
        )
        db.session.add(battle)
        db.session.commit()
        return battle

    def update_battle_status(self, battle_id, status):
        battle = self.get_battle(battle_id)
        if not battle:
            raise NotFoundError('Battle not found')
        battle.status = status if isinstance(status, BattleStatus) else BattleStatus(status)
        battle.updated_at = datetime.utcnow()
        db.session.commit()
        return battle

    def close_expired_battles(self, now=None):
        """End every active battle whose deadline has passed. Returns how many were closed."""
        now = now or datetime.utcnow()
        result = db.session.execute(
            update(Battle)
            .where(Battle.status == BattleStatus.active, Battle.ends_at <= now)
            .values(status=BattleStatus.ended, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        return result.rowcount

    # Track operations

    def get_tracks(self, battle_id):
        return Track.query.filter_by(battle_id=_as_uuid(battle_id)).order_by(Track.created_at.asc()).all()

    def get_track(self, track_id):
        return db.session.get(Track, _as_uuid(track_id))

    def create_track(self, title, artist_id, battle_id, audio_url=None, bandlab_url=None, duration=None):
        if not self.get_battle(battle_id):
            raise NotFoundError('Battle not found')

        track = Track(
            title=title,
            artist_id=_as_uuid(artist_id),
            battle_id=_as_uuid(battle_id),
            audio_url=audio_url,
            bandlab_url=bandlab_url,
            duration=duration,
        )
        db.session.add(track)
        db.session.commit()
        return track

    # Vote operations

    def get_votes(self, battle_id):
        return Vote.query.filter_by(battle_id=_as_uuid(battle_id)).all()

    def get_user_vote(self, user_id, battle_id):
        return Vote.query.filter_by(user_id=_as_uuid(user_id), battle_id=_as_uuid(battle_id)).first()

    def create_vote(self, user_id, track_id, battle_id):
        """Record a vote; the (user, battle) unique constraint settles concurrent attempts."""
        battle = self.get_battle(battle_id)
        if not battle:
            raise NotFoundError('Battle not found')
        if battle.status != BattleStatus.active:
            raise ValidationError('Battle is not accepting votes')

        track = self.get_track(track_id)
        if not track or track.battle_id != battle.id:
            raise ValidationError('Track is not part of this battle')

        vote = Vote(user_id=_as_uuid(user_id), track_id=track.id, battle_id=battle.id)
        db.session.add(vote)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info("Duplicate vote rejected for user %s in battle %s", user_id, battle_id)
            raise DuplicateVoteError()
        return vote

    def get_vote_count(self, track_id):
        return Vote.query.filter_by(track_id=_as_uuid(track_id)).count()

    # Referral operations

    def get_referrals(self, referrer_id):
        return Referral.query.filter_by(referrer_id=_as_uuid(referrer_id)).order_by(Referral.created_at.desc()).all()

    def create_referral(self, referrer_id, social_post_url=None, referred_user_id=None, status=None):
        if referred_user_id and not self.get_user(referred_user_id):
            raise NotFoundError('Referred user not found')

        referral = Referral(
            referrer_id=_as_uuid(referrer_id),
            referred_user_id=_as_uuid(referred_user_id),
            social_post_url=social_post_url,
            status=ReferralStatus(status) if status else ReferralStatus.pending,
        )
        db.session.add(referral)
        db.session.commit()
        return referral

    def get_top_referrers(self, limit):
        referral_count = func.count(Referral.id).label('referral_count')
        rows = (
            db.session.query(User, referral_count)
            .outerjoin(Referral, Referral.referrer_id == User.id)
            .group_by(User.id)
            .order_by(referral_count.desc(), User.username.asc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [{'user': user, 'referral_count': count} for user, count in rows]

    # Trial slot operations

    def get_available_trial_slots(self, genre_id):
        genre = self.get_genre(genre_id)
        if not genre:
            return 0
        return genre.available_trial_slots

    def grant_trial_slot(self, user_id, genre_id, now=None):
        """Claim one slot in a genre and put the user on trial, all in one transaction.

        The claim is a conditional UPDATE, so the database decides which of
        several concurrent requests gets the last slot.
        """
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError('User not found')
        genre_uuid = _as_uuid(genre_id)

        now = now or datetime.utcnow()
        expires_at = add_months(now, TRIAL_PERIOD_MONTHS)

        try:
            claimed = db.session.execute(
                update(Genre)
                .where(Genre.id == genre_uuid, Genre.filled_trial_slots < Genre.max_trial_slots)
                .values(filled_trial_slots=Genre.filled_trial_slots + 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if not claimed:
                raise NoTrialSlotsAvailableError()

            trial_slot = TrialSlot(genre_id=genre_uuid, user_id=user.id, granted_at=now, expires_at=expires_at)
            db.session.add(trial_slot)

            user.subscription_status = SubscriptionStatus.trial
            user.trial_expires_at = expires_at
            if user.role == UserRole.listener:
                user.role = UserRole.participant
            user.updated_at = now

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Granted trial slot in genre %s to user %s until %s", genre_id, user_id, expires_at)
        return trial_slot

    # Leaderboard operations

    def get_top_artists(self, limit):
        total_votes = func.count(Vote.id).label('total_votes')
        rows = (
            db.session.query(User, total_votes)
            .outerjoin(Track, Track.artist_id == User.id)
            .outerjoin(Vote, Vote.track_id == Track.id)
            .filter(User.role == UserRole.participant)
            .group_by(User.id)
            .order_by(total_votes.desc(), User.username.asc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [{'user': user, 'total_votes': count} for user, count in rows]

    # Admin operations

    def get_admin_stats(self):
        total_users = User.query.count()
        active_battles = Battle.query.filter(Battle.status == BattleStatus.active).count()
        active_subscriptions = User.query.filter(User.subscription_status == SubscriptionStatus.active).count()
        trial_users = User.query.filter(User.subscription_status == SubscriptionStatus.trial).count()
        revenue = db.session.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.status == PaymentStatus.completed
        ).scalar()

        return {
            'total_users': total_users,
            'active_battles': active_battles,
            'trial_conversions': active_subscriptions,
            'trial_users': trial_users,
            'revenue': float(revenue or 0),
        }

    def get_admin_settings(self, admin_id):
        return AdminSettings.query.filter_by(admin_id=_as_uuid(admin_id)).first()

    def upsert_admin_settings(self, admin_id, settings):
        admin_settings = self.get_admin_settings(admin_id)
        if admin_settings is None:
            admin_settings = AdminSettings(admin_id=_as_uuid(admin_id))
            db.session.add(admin_settings)

        if 'stripe_account_id' in settings:
            admin_settings.stripe_account_id = settings['stripe_account_id']
        if settings.get('payout_schedule'):
            admin_settings.payout_schedule = PayoutSchedule(settings['payout_schedule'])
        admin_settings.updated_at = datetime.utcnow()

        try:
            db.session.commit()
        except IntegrityError:
            # Another request inserted the row first; apply on top of it
            db.session.rollback()
            return self.upsert_admin_settings(admin_id, settings)
        return admin_settings

    # Payment operations

    def record_payment(self, user_id, payment_intent_id, amount, currency='usd',
                       status=PaymentStatus.completed, error_message=None):
        """Store one payment ledger row. Returns (payment, created)."""
        payment = Payment.query.filter_by(payment_intent_id=payment_intent_id).first()
        if payment and payment.status == status:
            return payment, False

        if payment is None:
            payment = Payment(user_id=_as_uuid(user_id), payment_intent_id=payment_intent_id)
            db.session.add(payment)
        payment.amount = Decimal(str(amount))
        payment.currency = currency
        payment.status = status
        payment.error_message = error_message

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return Payment.query.filter_by(payment_intent_id=payment_intent_id).first(), False
        return payment, True

    def activate_subscription(self, user):
        user.subscription_status = SubscriptionStatus.active
        if user.role == UserRole.listener:
            user.role = UserRole.participant
        db.session.commit()
        logger.info("Subscription activated for user %s", user.id)
        return user

    def cancel_subscription(self, user):
        user.subscription_status = SubscriptionStatus.canceled
        db.session.commit()
        logger.info("Subscription canceled for user %s", user.id)
        return user

    # Content rating operations

    def flag_track(self, track_id, user_id, rating=None):
        track = self.get_track(track_id)
        if not track:
            raise NotFoundError('Track not found')

        content_rating = ContentRating.query.filter_by(track_id=track.id).first()
        if content_rating is None:
            content_rating = ContentRating(track_id=track.id, battle_id=track.battle_id, flagged_by=[])
            db.session.add(content_rating)

        flagged_by = list(content_rating.flagged_by or [])
        if str(user_id) not in flagged_by:
            flagged_by.append(str(user_id))
        content_rating.flagged_by = flagged_by
        if rating:
            content_rating.rating = Rating(rating)
            content_rating.confirmed_by_admin = False

        db.session.commit()
        return content_rating

    def get_pending_content_ratings(self):
        return ContentRating.query.filter_by(confirmed_by_admin=False).order_by(ContentRating.created_at.asc()).all()

    def confirm_content_rating(self, content_rating_id, rating=None):
        content_rating = db.session.get(ContentRating, _as_uuid(content_rating_id))
        if not content_rating:
            raise NotFoundError('Content rating not found')
        if rating:
            content_rating.rating = Rating(rating)
        content_rating.confirmed_by_admin = True
        db.session.commit()
        return content_rating

    # Session operations

    def create_session(self, user_id, ttl, now=None):
        now = now or datetime.utcnow()
        session = Session(
            sid=secrets.token_urlsafe(32),
            sess={'user_id': str(user_id), 'created_at': now.isoformat()},
            expire=now + ttl,
        )
        db.session.add(session)
        db.session.commit()
        return session

    def get_session(self, sid):
        if not sid:
            return None
        return db.session.get(Session, sid)

    def delete_session(self, sid):
        session = self.get_session(sid)
        if session:
            db.session.delete(session)
            db.session.commit()

    def purge_expired_sessions(self, now=None):
        now = now or datetime.utcnow()
        deleted = Session.query.filter(Session.expire <= now).delete(synchronize_session=False)
        db.session.commit()
        return deleted


storage = DatabaseStorage()
