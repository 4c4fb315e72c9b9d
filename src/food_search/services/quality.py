"""Classify the overall outcome of a search."""

from dataclasses import dataclass

from food_search.domain.search import (
    ExternalOrigin,
    QualityTier,
    SearchMethod,
    SearchQuality,
)


@dataclass(frozen=True)
class QualityClassifier:
    """Maps result counts and provenance to a quality label."""

    high_threshold: int = 8
    medium_threshold: int = 4

    def tier(self, kept: int) -> QualityTier:
        """Return the tier for a final result count."""
        if kept > self.high_threshold:
            return QualityTier.HIGH
        if kept > self.medium_threshold:
            return QualityTier.MEDIUM
        return QualityTier.LOW

    def classify(  # noqa: PLR0913
        self,
        *,
        local_count: int,
        local_method: SearchMethod,
        external_count: int,
        external_kept: int,
        external_origin: ExternalOrigin,
        kept: int,
    ) -> SearchQuality:
        """Build the quality summary for one search.

        `external_count` is the fetched batch size before merging;
        `external_kept` is how many of those survived dedup and the cap.
        """
        return SearchQuality(
            quality=self.tier(kept),
            method=_method(local_count, local_method, external_kept, external_origin),
            total_found=local_count + external_count,
            quality_kept=kept,
        )


def _method(
    local_count: int,
    local_method: SearchMethod,
    external_kept: int,
    external_origin: ExternalOrigin,
) -> SearchMethod:
    if external_origin is ExternalOrigin.CACHED:
        return SearchMethod.CACHED
    if external_origin is ExternalOrigin.LIVE:
        if local_count == 0:
            return SearchMethod.EXTERNAL
        if external_kept > 0:
            return SearchMethod.HYBRID
    return local_method
