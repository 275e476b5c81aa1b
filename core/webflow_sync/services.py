"""
Webflow Sync Service
====================

Keeps the Webflow CMS item of a class in step with the database.

Sync strategy for a class that already has an item:
1. Update the live item (publishes in the same call)
2. If that fails, update the staged item and publish it separately
3. If the item no longer exists, create a new one and store its id

All functions return an ``OperationResult``; Webflow problems never raise
into the calling view.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from core.exceptions import AcademyException, ConfigurationException
from core.results import OperationResult
from .client import WebflowClient, is_missing_item_error
from .field_mappings import map_class_to_webflow_fields

logger = logging.getLogger(__name__)

ACTION_UPDATED = "updated"
ACTION_CREATED = "created"
ACTION_RECREATED = "recreated"


@dataclass
class WebflowConfig:
    site_id: str
    collection_id: str
    api_token: str


def get_webflow_config(program_type: Optional[str]) -> Optional[WebflowConfig]:
    """
    Configuration for the collection that holds classes of ``program_type``.

    Programs live in their own collection; courses (and unknown types) use
    the courses collection. Returns None if anything is missing.
    """
    api_token = getattr(settings, "WEBFLOW_API_TOKEN", "")
    site_id = getattr(settings, "WEBFLOW_SITE_ID", "")
    if not api_token or not site_id:
        logger.error("Missing Webflow API configuration (WEBFLOW_API_TOKEN / WEBFLOW_SITE_ID)")
        return None

    if program_type == "program":
        setting_name = "WEBFLOW_PROGRAMS_COLLECTION_ID"
    else:
        setting_name = "WEBFLOW_COURSES_COLLECTION_ID"
    collection_id = getattr(settings, setting_name, "")
    if not collection_id:
        logger.error(f"Missing {setting_name} for program type {program_type!r}")
        return None

    return WebflowConfig(site_id=site_id, collection_id=collection_id, api_token=api_token)


def _client_for(klass):
    program_type = klass.course.program_type
    config = get_webflow_config(program_type)
    if config is None:
        raise ConfigurationException(
            "Webflow configuration not available. Please check environment variables."
        )
    return WebflowClient(api_token=config.api_token), config, program_type == "program"


def _update_existing(client: WebflowClient, collection_id: str, item_id: str, fields) -> bool:
    """
    Returns True once the item is updated and published, False if it is gone.
    """
    try:
        client.update_live_item(collection_id, item_id, fields)
        return True
    except AcademyException as e:
        if is_missing_item_error(e):
            return False
        logger.warning(f"Live update of Webflow item {item_id} failed, trying staged update: {e.message}")

    try:
        client.update_item(collection_id, item_id, fields)
    except AcademyException as e:
        if is_missing_item_error(e):
            return False
        raise

    try:
        client.publish_items(collection_id, [item_id])
    except AcademyException as e:
        # The staged change is saved and goes out with the next site publish
        logger.warning(f"Publishing Webflow item {item_id} failed: {e.message}")
    return True


def sync_class(klass) -> OperationResult:
    """
    Push a class to Webflow.

    Returns:
        OperationResult with ``action`` (updated / created / recreated) and
        ``webflow_item_id``
    """
    try:
        client, config, is_program = _client_for(klass)
    except AcademyException as e:
        return OperationResult.from_exception(e)

    fields = map_class_to_webflow_fields(klass, is_program)
    existing_id = klass.webflow_item_id

    try:
        if existing_id and _update_existing(client, config.collection_id, existing_id, fields):
            logger.info(f"Webflow item {existing_id} updated for class {klass.class_id}")
            return OperationResult.ok(action=ACTION_UPDATED, webflow_item_id=existing_id)

        item = client.create_item(config.collection_id, fields)
    except AcademyException as e:
        logger.error(f"Webflow sync of class {klass.class_id} failed: {e.message}")
        return OperationResult.from_exception(e)

    item_id = item.get("id")
    if not item_id:
        return OperationResult.fail("Webflow did not return an item id", status_code=502)

    try:
        client.publish_items(config.collection_id, [item_id])
    except AcademyException as e:
        logger.warning(f"Publishing new Webflow item {item_id} failed: {e.message}")

    klass.webflow_item_id = item_id
    klass.save(update_fields=["webflow_item_id", "updated_at"])

    action = ACTION_RECREATED if existing_id else ACTION_CREATED
    logger.info(f"Webflow item {item_id} {action} for class {klass.class_id}")
    return OperationResult.ok(action=action, webflow_item_id=item_id)


def delete_class_item(klass) -> OperationResult:
    """Remove the Webflow item of a class. A missing item counts as deleted."""
    if not klass.webflow_item_id:
        return OperationResult.ok(deleted=False)

    try:
        client, config, _ = _client_for(klass)
        client.delete_item(config.collection_id, klass.webflow_item_id)
    except AcademyException as e:
        if is_missing_item_error(e):
            return OperationResult.ok(deleted=True)
        logger.error(f"Deleting Webflow item {klass.webflow_item_id} failed: {e.message}")
        return OperationResult.from_exception(e)

    logger.info(f"Webflow item {klass.webflow_item_id} deleted")
    return OperationResult.ok(deleted=True)
