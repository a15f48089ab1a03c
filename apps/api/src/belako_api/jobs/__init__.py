"""Batch jobs runnable from tooling scripts."""

from .stripe_sales_backfill import run_stripe_sales_backfill
from .tier_progress_backfill import run_tier_progress_backfill

__all__ = ["run_stripe_sales_backfill", "run_tier_progress_backfill"]
