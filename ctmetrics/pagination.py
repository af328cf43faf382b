"""
Offset pagination over commercetools GraphQL query results.

commercetools list queries return {total, results}; pages are requested
with limit/offset until the fetched count reaches the reported total.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from ctmetrics.queries import read_root

module_logger = logging.getLogger(__name__)

QueryExecutor = Callable[[str, Optional[Dict[str, Any]]], Awaitable[Dict[str, Any]]]


class OffsetPaginator:
    """
    Async paginator for a single GraphQL list field.

    Usage:
        paginator = OffsetPaginator(client.execute, "orders", page_size=500)

        async for batch in paginator.paginate(ORDER_EMAIL_PAGE_QUERY, {"where": where}):
            for order in batch:
                process(order)
    """

    def __init__(
        self,
        execute: QueryExecutor,
        root: str,
        page_size: int = 500,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize paginator.

        Args:
            execute: Async query executor (e.g., client.execute)
            root: Top-level field holding {total, results}
            page_size: Records per page
            logger: Progress logger (defaults to this module's)
        """
        self.execute = execute
        self.root = root
        self.page_size = page_size
        self.logger = logger or module_logger

    async def paginate(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        """
        Iterate through all pages of results.

        Stops once fetched >= total, or on an empty page even if the
        reported total says otherwise.

        Args:
            query: Document declaring $limit and $offset
            variables: Base variables (limit/offset added automatically)

        Yields:
            List of records from each page

        Raises:
            QueryExecutionError: Propagated from the executor
        """
        variables = dict(variables or {})
        variables["limit"] = self.page_size
        offset = 0
        fetched = 0

        while True:
            variables["offset"] = offset
            result = await self.execute(query, dict(variables))

            node = read_root(result, self.root)
            batch = node.get("results") or []
            total = node.get("total") or 0

            self.logger.info(
                f"Fetched {len(batch)} {self.root} (offset: {offset}, total: {total})"
            )

            if batch:
                yield batch

            fetched += len(batch)
            offset += self.page_size

            if fetched >= total:
                break

            if not batch:
                self.logger.warning(
                    f"Empty page before reaching reported total ({fetched}/{total}), stopping"
                )
                break
