#!/usr/bin/env python3
"""
Entra Role Holder Group Sync

Keeps three security groups in sync with the current holders of directory roles:
privileged roles, non-privileged roles, and the union of both.
"""

import sys
import asyncio
import logging
from typing import Dict, Optional, Set

from dotenv import load_dotenv

from config import SyncConfig, load_config
from diff_engine import compute_diff
from errors import AuthorizationError, ConfigurationError, MutationError, TransientFetchError
from graph_adapter import GraphDirectoryClient
from group_resolver import GroupResolver
from membership_applier import MembershipApplier
from membership_fetcher import MembershipFetcher
from models import StageReport, SyncRunResult, TargetGroup
from principal_filter import PrincipalFilter


logger = logging.getLogger(__name__)


# Load environment variables
load_dotenv()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


class LoggingReporter:
    """Writes one summary per reconciliation pass to the log."""

    def report(self, stage: StageReport):
        if stage.error is not None:
            logger.error(f"[{stage.group_name}] pass aborted: {stage.error}")
            return

        result = stage.result
        logger.info(
            f"[{stage.group_name}] existing={stage.existing_count} "
            f"to_add={stage.to_add_count} to_remove={stage.to_remove_count} "
            f"added={result.added} removed={result.removed} failures={len(result.failures)}"
        )
        for principal_id, error in result.failures:
            logger.error(f"[{stage.group_name}] {principal_id}: {error}")


class SyncOrchestrator:
    """
    Runs the privileged, non-privileged and union passes in order.

    A fetch, configuration or group creation error aborts only the pass it
    happens in. An authorization error aborts the whole run since nothing
    else would succeed.
    """

    def __init__(self, client, config: SyncConfig, reporter=None):
        self.client = client
        self.config = config
        self.reporter = reporter or LoggingReporter()
        self.principal_filter = PrincipalFilter(client)
        self.resolver = GroupResolver(client, dry_run=config.dry_run)
        self.fetcher = MembershipFetcher(client, page_size=config.page_size)
        self.applier = MembershipApplier(client, batch_size=config.add_batch_size, dry_run=config.dry_run)

    async def build_desired_set(self, privileged: bool) -> Set[str]:
        """Collect the eligible holders of privileged (or non-privileged) roles."""
        assignments = await self.client.list_role_assignments(privileged=privileged)
        return await self.principal_filter.filter_principals(a.principal_id for a in assignments)

    async def reconcile_group(self, group_name: str, desired: Set[str]) -> StageReport:
        """Resolve, fetch, diff and apply for one target group."""
        logger.info(f"Reconciling '{group_name}' against {len(desired)} desired members")

        group = TargetGroup(name=group_name)
        group.id = await self.resolver.resolve_or_create(group_name)
        # A dry run leaves a missing group unresolved; it would start out empty
        if group.id:
            group.current_members = await self.fetcher.fetch_members(group.id)

        diff = compute_diff(desired, group.current_members, group_name)
        result = await self.applier.apply(group.id, diff)

        return StageReport(
            group_name=group_name,
            existing_count=len(group.current_members),
            to_add_count=len(diff.to_add),
            to_remove_count=len(diff.to_remove),
            result=result,
        )

    async def _run_stage(self, run: SyncRunResult, group_name: str, privileged: Optional[bool],
                         union_of: Optional[Dict[str, Optional[Set[str]]]] = None) -> Optional[Set[str]]:
        desired: Optional[Set[str]] = None
        try:
            if union_of is not None:
                missing = [name for name, members in union_of.items() if members is None]
                if missing:
                    raise TransientFetchError(
                        f"Desired set for {', '.join(missing)} unavailable, not computing the union"
                    )
                desired = set().union(*union_of.values())
            else:
                desired = await self.build_desired_set(privileged)

            run.desired_sets[group_name] = desired
            stage = await self.reconcile_group(group_name, desired)
        except (TransientFetchError, ConfigurationError, MutationError) as e:
            stage = StageReport(group_name=group_name, error=e)

        run.reports.append(stage)
        self.reporter.report(stage)
        return desired

    async def run(self) -> SyncRunResult:
        run = SyncRunResult()
        if self.config.dry_run:
            logger.info("Running in DRY RUN mode - no changes will be made")

        privileged = await self._run_stage(run, self.config.privileged_group, privileged=True)
        nonprivileged = await self._run_stage(run, self.config.nonprivileged_group, privileged=False)
        await self._run_stage(
            run,
            self.config.all_group,
            privileged=None,
            union_of={
                self.config.privileged_group: privileged,
                self.config.nonprivileged_group: nonprivileged,
            },
        )

        return run


async def sync_roles_to_groups() -> int:
    """
    Main sync function.
    Returns the process exit code.
    """
    try:
        config = load_config()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(config.log_level)
    logger.info("Starting role holder group sync")

    client = GraphDirectoryClient(config)
    try:
        await client.connect()
        run = await SyncOrchestrator(client, config).run()
    except AuthorizationError as e:
        logger.error(f"Sync aborted, insufficient permissions: {e}")
        return 1
    except Exception as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        return 1
    finally:
        await client.close()

    if run.has_failures:
        logger.warning("Sync completed with failures, re-run to retry outstanding changes")
        return 1

    logger.info("Sync completed successfully")
    return 0


def main():
    sys.exit(asyncio.run(sync_roles_to_groups()))


if __name__ == "__main__":
    main()
