"""
Stripe webhook processing.

This is the one inbound interface that authenticates the caller (Stripe)
instead of an end user: nothing is processed before the
``Stripe-Signature`` header has been verified against the endpoint secret.
"""

import json
from typing import Any, Dict, List, Optional

import stripe

from ..models.site import content_key, settings_key
from ..store.base import KeyValueStore
from ..utils.exceptions import IntegrationUnavailableError, InvalidInputError, WebhookSignatureError
from ..utils.logger import get_logger
from .site_directory import SiteDirectory

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class BillingService:
    """Applies verified Stripe events to site content and settings"""

    def __init__(self, store: KeyValueStore, directory: SiteDirectory, webhook_secret: Optional[str]):
        self.store = store
        self.directory = directory
        self.webhook_secret = webhook_secret

    def verify_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify the signature and return the event as a plain dict.

        Raises:
            IntegrationUnavailableError: webhook secret not configured
            WebhookSignatureError: missing or invalid signature
        """
        if not self.webhook_secret:
            raise IntegrationUnavailableError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature verification failed", error=str(e))
            raise WebhookSignatureError(str(e)) from e
        except ValueError as e:
            raise InvalidInputError("Invalid webhook payload") from e
        return json.loads(payload)

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == CHECKOUT_COMPLETED:
            upgraded = self.apply_checkout_completed(obj)
            return {"received": True, "upgraded": upgraded}
        if event_type == SUBSCRIPTION_DELETED:
            downgraded = self.apply_subscription_deleted(obj.get("id"))
            return {"received": True, "downgraded": downgraded}

        logger.info("Ignoring Stripe event", event_type=event_type)
        return {"received": True}

    def apply_checkout_completed(self, session: Dict[str, Any]) -> Optional[str]:
        """Upgrade metadata.siteId to PREMIUM; returns the siteId or None"""
        metadata = session.get("metadata") or {}
        site_id = metadata.get("siteId")
        if not site_id:
            logger.error("Checkout session without siteId metadata", session_id=session.get("id"))
            return None

        content = self.store.get(content_key(site_id))
        if not isinstance(content, dict):
            logger.error("Could not find site data for checkout", site_id=site_id)
            return None

        billing: Dict[str, Any] = {}
        if session.get("customer"):
            billing["stripeCustomerId"] = session["customer"]
        if metadata.get("paymentType") == "subscription" and session.get("subscription"):
            billing["subscriptionId"] = session["subscription"]

        content.update(billing)
        content["paymentTier"] = "PREMIUM"
        self.store.set(content_key(site_id), content)

        settings = self.store.get(settings_key(site_id))
        if isinstance(settings, dict) and billing:
            settings.update(billing)
            self.store.set(settings_key(site_id), settings)

        logger.info("Site upgraded to PREMIUM", site_id=site_id)
        return site_id

    def apply_subscription_deleted(self, subscription_id: Optional[str]) -> List[str]:
        """Downgrade every site holding subscription_id to FREE"""
        if not subscription_id:
            return []

        site_ids = self.directory.find_sites_by_subscription(subscription_id)
        for site_id in site_ids:
            logger.info("Downgrading site due to canceled subscription", site_id=site_id)
            content = self.store.get(content_key(site_id))
            if isinstance(content, dict):
                content["paymentTier"] = "FREE"
                content["subscriptionId"] = None
                self.store.set(content_key(site_id), content)

            settings = self.store.get(settings_key(site_id))
            if isinstance(settings, dict) and settings.get("subscriptionId") == subscription_id:
                settings.pop("subscriptionId", None)
                self.store.set(settings_key(site_id), settings)

        if len(site_ids) > 1:
            logger.warning("Subscription was shared by several sites", count=len(site_ids))
        return site_ids
