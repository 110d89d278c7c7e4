"""
Patient identifier allocation.

An identifier is the last six characters of the patient's national ID
followed by four random digits in [1000, 9999], giving a 10-digit string that
support staff can sanity-check against the national ID without it being
fully guessable. Candidates are checked against the mapping store and
redrawn on collision. The check is only an early-out: the identifier is
not reserved until ``MappingStore.create`` succeeds.
"""

import logging
import random
from typing import Optional
from portal.exceptions import AllocationExhausted, ValidationError
from portal.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 6
SUFFIX_MIN = 1000
SUFFIX_MAX = 9999
DEFAULT_ATTEMPTS = 10


class IdentifierAllocator:

    def __init__(
        self,
        store: MappingStore,
        attempts: int = DEFAULT_ATTEMPTS,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.attempts = attempts
        self.rng = rng or random.SystemRandom()

    @staticmethod
    def prefix_for(national_id: str) -> str:
        national_id = (national_id or "").strip()
        if not national_id:
            raise ValidationError("national_id", "is required")
        if len(national_id) < PREFIX_LENGTH:
            raise ValidationError("national_id", f"must be at least {PREFIX_LENGTH} characters")
        return national_id[-PREFIX_LENGTH:]

    def candidate(self, prefix: str) -> str:
        return f"{prefix}{self.rng.randint(SUFFIX_MIN, SUFFIX_MAX)}"

    async def allocate(self, national_id: str) -> str:
        """Return an identifier that was free at check time; never writes."""
        prefix = self.prefix_for(national_id)
        for attempt in range(1, self.attempts + 1):
            identifier = self.candidate(prefix)
            if not await self.store.exists(identifier):
                if attempt > 1:
                    logger.info("Allocated identifier after %d attempts", attempt)
                return identifier
            logger.debug("Identifier candidate %s taken (attempt %d)", identifier, attempt)

        logger.warning("Identifier allocation exhausted for prefix %s", prefix)
        raise AllocationExhausted(prefix, self.attempts)
