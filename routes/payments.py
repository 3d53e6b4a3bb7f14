"""Payments blueprint: Stripe payment intents, subscriptions and webhooks."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from math import ceil

import stripe
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest

from models import db
from models.project import Project
from models.subscription import SUBSCRIPTION_PLANS, Subscription
from models.user import User
from services import projects
from services.access import can_mutate_owner_fields, load_project, owned_projects_clause
from services.errors import ConfigurationAbsent, UpstreamFailure
from utils.auth import require_user
from utils.request_validation import parse_json_request, query_int, raise_for_errors

payments_bp = Blueprint("payments", __name__)


def _init_stripe() -> str:
    """Configure Stripe with the API key from configuration."""

    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        raise ConfigurationAbsent("Stripe secret key is not configured.")
    stripe.api_key = api_key
    return api_key


def _project_id(data: dict, errors: list) -> int | None:
    try:
        return int(data.get("project_id"))
    except (TypeError, ValueError):
        errors.append({"field": "project_id", "message": "Valid project ID required"})
        return None


def _get_or_create_customer(user: User) -> str:
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer = stripe.Customer.create(
        email=user.email,
        name=user.name,
        metadata={"user_id": str(user.id)},
    )
    user.stripe_customer_id = customer["id"]
    db.session.commit()
    return user.stripe_customer_id


def _plan_for_price(price_id: str) -> str:
    for plan in SUBSCRIPTION_PLANS[:-1]:
        if plan in price_id:
            return plan
    return "enterprise"


def _first_item(subscription_obj) -> dict:
    items = (subscription_obj.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _period_end(subscription_obj) -> datetime | None:
    period_end = subscription_obj.get("current_period_end")
    if period_end is None:
        period_end = _first_item(subscription_obj).get("current_period_end")
    if period_end is None:
        return None
    return datetime.fromtimestamp(period_end, UTC).replace(tzinfo=None)


def _store_subscription(user: User, subscription_obj, plan: str | None = None) -> Subscription:
    subscription = user.subscription
    if subscription is None:
        price_id = (_first_item(subscription_obj).get("price") or {}).get("id") or ""
        subscription = Subscription(user=user, plan=plan or _plan_for_price(price_id))
        db.session.add(subscription)
    if plan:
        subscription.plan = plan
    subscription.stripe_subscription_id = subscription_obj.get("id")
    subscription.status = subscription_obj.get("status") or subscription.status or "incomplete"
    subscription.current_period_end = _period_end(subscription_obj)
    return subscription


@payments_bp.route("/create-payment-intent", methods=["POST"])
@jwt_required()
def create_payment_intent():
    """Create a Stripe payment intent for one of the caller's projects."""

    _init_stripe()
    user = require_user()
    data = parse_json_request(request)

    errors: list = []
    try:
        amount = Decimal(str(data.get("amount")))
        if not amount.is_finite() or amount <= 0:
            raise InvalidOperation
    except (InvalidOperation, TypeError, ValueError):
        errors.append({"field": "amount", "message": "Amount must be a positive number"})
        amount = None
    currency = (data.get("currency") or "usd").lower()
    if currency not in current_app.config.get("PAYMENT_CURRENCIES", ("usd",)):
        errors.append({"field": "currency", "message": "Invalid currency"})
    project_id = _project_id(data, errors)
    raise_for_errors(errors)

    project = load_project(project_id, user, can_mutate_owner_fields)

    try:
        customer_id = _get_or_create_customer(user)
        intent = stripe.PaymentIntent.create(
            amount=int((amount * 100).to_integral_value()),
            currency=currency,
            customer=customer_id,
            metadata={"project_id": str(project.id), "user_id": str(user.id)},
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as exc:
        current_app.logger.exception("Create payment intent failed")
        raise UpstreamFailure("Payment processing error.") from exc

    return jsonify({"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]})


@payments_bp.route("/confirm-payment", methods=["POST"])
@jwt_required()
def confirm_payment():
    """Record a succeeded payment intent against the project's budget."""

    _init_stripe()
    user = require_user()
    data = parse_json_request(request)

    errors: list = []
    intent_id = data.get("payment_intent_id")
    if not intent_id or not isinstance(intent_id, str):
        errors.append({"field": "payment_intent_id", "message": "Payment intent ID required"})
    project_id = _project_id(data, errors)
    raise_for_errors(errors)

    project = load_project(project_id, user, can_mutate_owner_fields)

    try:
        intent = stripe.PaymentIntent.retrieve(intent_id)
    except stripe.StripeError as exc:
        current_app.logger.exception("Retrieve payment intent failed")
        raise UpstreamFailure("Payment confirmation error.") from exc

    if intent.get("status") != "succeeded":
        raise BadRequest("Payment not completed.")
    metadata = intent.get("metadata") or {}
    if metadata.get("project_id") != str(project.id):
        raise BadRequest("Payment does not belong to this project.")
    if not user.stripe_customer_id or intent.get("customer") != user.stripe_customer_id:
        raise BadRequest("Payment does not belong to this customer.")

    amount = Decimal(intent.get("amount") or 0) / 100
    projects.record_payment(project, user, amount)
    return jsonify({"project": project.to_dict()})


@payments_bp.route("/history", methods=["GET"])
@jwt_required()
def payment_history():
    user = require_user()
    page = query_int(request.args, "page", 1)
    limit = query_int(request.args, "limit", 10, maximum=100)

    query = Project.query.filter(owned_projects_clause(user), Project.budget_actual > 0)
    total = query.count()
    paid = (
        query.order_by(Project.created_at.desc(), Project.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify(
        {
            "payments": [
                {
                    "project_id": project.id,
                    "title": project.title,
                    "status": project.status,
                    "budget": project.budget,
                    "created_at": project.created_at.isoformat(),
                }
                for project in paid
            ],
            "pagination": {"current": page, "pages": ceil(total / limit), "total": total},
        }
    )


@payments_bp.route("/create-subscription", methods=["POST"])
@jwt_required()
def create_subscription():
    """Subscribe the caller to a premium plan."""

    _init_stripe()
    user = require_user()
    data = parse_json_request(request)
    price_id = data.get("price_id")
    payment_method_id = data.get("payment_method_id")

    errors: list = []
    if not price_id or not isinstance(price_id, str):
        errors.append({"field": "price_id", "message": "Price ID required"})
    if not payment_method_id or not isinstance(payment_method_id, str):
        errors.append({"field": "payment_method_id", "message": "Payment method ID required"})
    raise_for_errors(errors)

    try:
        customer_id = _get_or_create_customer(user)
        stripe.PaymentMethod.attach(payment_method_id, customer=customer_id)
        stripe.Customer.modify(
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )
        subscription_obj = stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": price_id}],
            default_payment_method=payment_method_id,
            metadata={"user_id": str(user.id)},
            expand=["latest_invoice.payment_intent"],
        )
    except stripe.StripeError as exc:
        current_app.logger.exception("Create subscription failed")
        raise UpstreamFailure("Subscription creation error.") from exc

    subscription = _store_subscription(user, subscription_obj, plan=_plan_for_price(price_id))
    db.session.commit()
    return jsonify({"subscription": subscription.to_dict()})


def _user_for_subscription(subscription_obj) -> User | None:
    metadata = subscription_obj.get("metadata") or {}
    try:
        user = db.session.get(User, int(metadata.get("user_id")))
    except (TypeError, ValueError):
        user = None
    if user is None and subscription_obj.get("customer"):
        user = User.query.filter_by(stripe_customer_id=subscription_obj["customer"]).first()
    return user


def _handle_subscription_change(subscription_obj) -> None:
    user = _user_for_subscription(subscription_obj)
    if user is None:
        current_app.logger.warning(
            "No user for Stripe subscription %s", subscription_obj.get("id")
        )
        return
    _store_subscription(user, subscription_obj)


def _handle_invoice_paid(invoice) -> None:
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        return
    try:
        subscription_obj = stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as exc:
        raise UpstreamFailure("Could not load subscription.") from exc
    _handle_subscription_change(subscription_obj)


@payments_bp.route("/webhook", methods=["POST"])
def webhook():
    """Handle signed Stripe webhook events."""

    _init_stripe()
    webhook_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not webhook_secret:
        raise ConfigurationAbsent("Stripe webhook secret is not configured.")

    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except (ValueError, stripe.SignatureVerificationError):
        current_app.logger.warning("Webhook signature verification failed")
        raise BadRequest("Invalid webhook signature.")

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})

    if event_type == "payment_intent.succeeded":
        current_app.logger.info("PaymentIntent succeeded: %s", data_object.get("id"))
    elif event_type == "invoice.payment_succeeded":
        _handle_invoice_paid(data_object)
    elif event_type in {"customer.subscription.updated", "customer.subscription.deleted"}:
        _handle_subscription_change(data_object)
    else:
        current_app.logger.info("Unhandled Stripe event type %s", event_type)

    db.session.commit()
    return jsonify({"received": True})
