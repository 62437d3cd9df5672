"""Wallet ledger and top-up review workflow.

The ledger is the ``wallet_transactions`` table; ``users.wallet_balance`` is
a cached running total that is only ever changed by :func:`apply_delta`, in
the same database transaction that appends the matching ledger row.
Functions here flush but leave the commit to the caller's unit of work,
except for the top-up entry points, which are units of work themselves.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import update
from storefront.extensions import db
from storefront.errors import (
    AlreadyProcessedError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from storefront.models import (
    TopupPaymentMethod,
    TopupRequest,
    TopupStatus,
    TransactionStatus,
    TransactionType,
    User,
    WalletTransaction,
)
from storefront.services.audit_service import log_audit
from storefront.utils import to_decimal
import logging

logger = logging.getLogger(__name__)

MIN_TOPUP_AMOUNT = Decimal('1')


def get_wallet(user_id):
    balance = db.session.query(User.wallet_balance).filter(
        User.id == user_id).scalar()
    if balance is None:
        raise NotFoundError('User not found')
    transactions = WalletTransaction.query.filter_by(
        user_id=user_id
    ).order_by(
        WalletTransaction.created_at.desc(),
        WalletTransaction.id.desc()
    ).all()
    return balance, transactions


def apply_delta(
        user_id,
        amount,
        tx_type,
        description,
        status=TransactionStatus.COMPLETED):
    """Adjust the cached balance by ``amount`` and append a ledger row.

    Debits are conditional on the balance covering them, so two racing
    debits can never take the balance below zero.
    """
    amount = Decimal(amount)
    if not description:
        raise ValueError('Ledger entries require a description')

    stmt = update(User).where(User.id == user_id).values(
        wallet_balance=User.wallet_balance + amount)
    if amount < 0:
        stmt = stmt.where(User.wallet_balance >= -amount)
    result = db.session.execute(
        stmt.execution_options(synchronize_session='fetch'))

    if result.rowcount != 1:
        available = db.session.query(User.wallet_balance).filter(
            User.id == user_id).scalar()
        if available is None:
            raise NotFoundError('User not found')
        raise InsufficientBalanceError(-amount, available)

    transaction = WalletTransaction(
        user_id=user_id,
        type=tx_type,
        amount=amount,
        description=description,
        status=status,
    )
    db.session.add(transaction)
    db.session.flush()

    logger.info(
        "Wallet %s for user %s: %s (%s)",
        tx_type.value, user_id, amount, description)
    return transaction


def validate_topup_payload(data):
    errors = []

    amount = to_decimal(data.get('amount'))
    if amount is None:
        errors.append({'field': 'amount', 'message': 'Amount must be a number'})
    elif amount < MIN_TOPUP_AMOUNT:
        errors.append(
            {'field': 'amount', 'message': 'Amount must be at least $1'})
    elif amount.normalize().as_tuple().exponent < -2:
        errors.append({
            'field': 'amount',
            'message': 'Amount must have at most two decimal places'})

    method_raw = data.get('paymentMethod')
    method = None
    try:
        method = TopupPaymentMethod(method_raw)
    except ValueError:
        errors.append(
            {'field': 'paymentMethod', 'message': 'Invalid payment method'})

    proof = data.get('paymentProof')
    if not isinstance(proof, str) or not proof.strip():
        errors.append(
            {'field': 'paymentProof', 'message': 'Payment proof is required'})

    if errors:
        raise ValidationError('Validation failed', errors=errors)

    return amount, method, proof.strip()


def submit_topup(user, data):
    amount, method, proof = validate_topup_payload(data)

    topup = TopupRequest(
        user_id=user.id,
        amount=amount,
        payment_method=method,
        payment_proof=proof,
        status=TopupStatus.PENDING,
    )
    db.session.add(topup)
    db.session.commit()

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='TOPUP_REQUEST',
        target_type='TOPUP_REQUEST',
        target_id=topup.id,
        payload={'amount': str(amount), 'payment_method': method.value})
    return topup


def list_topup_requests(user_id=None, status=None):
    query = TopupRequest.query
    if user_id is not None:
        query = query.filter(TopupRequest.user_id == user_id)
    if status:
        try:
            query = query.filter(TopupRequest.status == TopupStatus(status))
        except ValueError:
            raise ValidationError('Invalid status filter', field='status')
    return query.order_by(
        TopupRequest.created_at.desc(),
        TopupRequest.id.desc()
    ).all()


def process_topup(request_id, status, admin_notes, operator):
    """Move a pending request to approved or rejected, exactly once.

    The status change is a conditional update on ``status = 'pending'``;
    of two racing reviewers only the first matches a row.
    """
    try:
        target = TopupStatus(status)
    except ValueError:
        target = None
    if target not in (TopupStatus.APPROVED, TopupStatus.REJECTED):
        raise ValidationError(
            'Status must be approved or rejected', field='status')
    if admin_notes is not None and not isinstance(admin_notes, str):
        raise ValidationError(
            'Admin notes must be a string', field='adminNotes')

    topup = db.session.get(TopupRequest, request_id)
    if topup is None:
        raise NotFoundError('Top-up request not found')
    if topup.status != TopupStatus.PENDING:
        raise AlreadyProcessedError()

    now = datetime.utcnow()
    result = db.session.execute(
        update(TopupRequest).where(
            TopupRequest.id == request_id,
            TopupRequest.status == TopupStatus.PENDING,
        ).values(
            status=target,
            admin_notes=admin_notes or '',
            processed_by=operator.id,
            processed_at=now,
            updated_at=now,
        ).execution_options(synchronize_session='fetch'))
    if result.rowcount != 1:
        raise AlreadyProcessedError()

    if target == TopupStatus.APPROVED:
        apply_delta(
            topup.user_id,
            topup.amount,
            TransactionType.TOPUP,
            f'Wallet top-up approved - {topup.payment_method.value}')

    db.session.commit()

    log_audit(
        actor_id=operator.id,
        actor_role=operator.role.value,
        action=f'TOPUP_{target.name}',
        target_type='TOPUP_REQUEST',
        target_id=topup.id,
        payload={
            'user_id': topup.user_id,
            'amount': str(topup.amount),
            'admin_notes': admin_notes or ''})
    return topup
