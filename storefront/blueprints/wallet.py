from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from storefront.middleware import role_required
from storefront.serializers import topup_payload, transaction_payload
from storefront.services import wallet_service
from storefront.services.notifications import notify
from storefront.utils import get_json_body, money
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('wallet', __name__)


@bp.route('/wallet', methods=['GET'])
@login_required
def get_wallet():
    balance, transactions = wallet_service.get_wallet(current_user.id)
    return jsonify({
        'balance': money(balance),
        'transactions': [transaction_payload(t) for t in transactions],
    })


@bp.route('/wallet/topup', methods=['POST'])
@login_required
def request_topup():
    data = get_json_body()
    topup = wallet_service.submit_topup(current_user, data)
    notice = notify(
        'info',
        'Top-up request submitted successfully. '
        'Please wait for admin approval.')
    return jsonify({
        'message': notice.title,
        'request': topup_payload(topup),
    }), 201


@bp.route('/wallet/topup-requests', methods=['GET'])
@login_required
def my_topup_requests():
    requests = wallet_service.list_topup_requests(user_id=current_user.id)
    return jsonify([topup_payload(r) for r in requests])


@bp.route('/wallet/admin/topup-requests', methods=['GET'])
@login_required
@role_required('ADMIN')
def all_topup_requests():
    requests = wallet_service.list_topup_requests(
        status=request.args.get('status'))
    return jsonify([topup_payload(r, include_user=True) for r in requests])


@bp.route('/wallet/admin/topup-requests/<int:request_id>', methods=['PUT'])
@login_required
@role_required('ADMIN')
def process_topup_request(request_id):
    data = get_json_body()
    status = data.get('status')
    topup = wallet_service.process_topup(
        request_id,
        status,
        data.get('adminNotes'),
        current_user,
    )
    notice = notify('success', f'Top-up request {status} successfully')
    return jsonify({
        'message': notice.title,
        'request': topup_payload(topup, include_user=True),
    })
