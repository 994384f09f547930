"""
Frequency and conditional distributions over a filtered record set.

Counting rules shared by every operation:
  - a null answer (None or an empty list) is counted as null, never bucketed
  - a list answer increments one bucket per matching entry (fan-out), so one
    record can land in several buckets
  - a scalar answer is compared in its text form; a value that matches no
    variant is a miss and is neither bucketed nor counted as null
  - custom answers match an option key first, then an option label
  - variants are always reported in declaration order
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from survey_crosstab.core.categories import CategoryEnum, Language
from survey_crosstab.core.errors import UnsupportedField
from survey_crosstab.core.fields import FieldReference, field_option_keys, field_variants
from survey_crosstab.core.metadata_loader import FieldSchema
from survey_crosstab.core.records import Record, scalar_text

logger = logging.getLogger(__name__)

# Per record: None when the answer is null, otherwise the bucket indices it
# increments (possibly empty for a miss, possibly repeated for duplicates).
BucketIndex = Optional[List[int]]


@dataclass
class DistributionResult:
    variant_order: List[str]
    freq: List[int]
    perc: List[float]
    null_count: int = 0
    total: int = 0

    @property
    def answered(self) -> int:
        return self.total - self.null_count


def percentages(counts: Sequence[int], denominator: int) -> List[float]:
    """counts[i] / denominator * 100, or all zeros when the denominator is zero."""
    if denominator <= 0:
        return [0.0 for _ in counts]
    return [c / denominator * 100.0 for c in counts]


class DistributionEngine:
    """
    Distributions for one record set under one language and reference year.

    Bucket indices are derived once per field and cached, so computing a
    full crosstab is one pass over cached indices per field pair.
    """

    def __init__(
        self,
        records: List[Record],
        schema: FieldSchema,
        lng: Language = Language.EN,
        reference_year: int = 2024,
    ) -> None:
        self.records = records
        self.schema = schema
        self.lng = lng
        self.reference_year = reference_year
        self._indices: Dict[FieldReference, List[BucketIndex]] = {}
        self._lookups: Dict[FieldReference, Dict[str, int]] = {}

    @property
    def total(self) -> int:
        return len(self.records)

    # -----------------------------------------------------------------------
    # Variant resolution
    # -----------------------------------------------------------------------

    def variant_order(self, ref: FieldReference) -> List[str]:
        return field_variants(ref, self.schema, self.lng)

    def _lookup(self, ref: FieldReference) -> Dict[str, int]:
        """Text form of a value -> bucket index."""
        cached = self._lookups.get(ref)
        if cached is not None:
            return cached

        lookup: Dict[str, int] = {}
        if ref.is_static:
            category = ref.static_field.category
            if category is None:
                raise UnsupportedField(f"Static field '{ref}' has no discrete variants.")
            for i, member in enumerate(category.get_all()):
                for text in (member.display(self.lng), member.label_en, member.label_ja, member.name):
                    lookup.setdefault(text, i)
        elif ref.is_custom:
            keys = field_option_keys(ref, self.schema)
            labels = self.variant_order(ref)
            for i, key in enumerate(keys):
                lookup.setdefault(key, i)
            for i, label in enumerate(labels):
                lookup.setdefault(label, i)
        else:
            raise UnsupportedField(f"Computed field '{ref}' cannot be tabulated.")

        self._lookups[ref] = lookup
        return lookup

    def _record_index(self, record: Record, ref: FieldReference, lookup: Dict[str, int]) -> BucketIndex:
        if ref.is_static:
            member = record.category_value(ref.static_field, self.reference_year)
            return [lookup[member.name]]

        value = record.custom_values.get(ref.custom_key)
        if value is None:
            return None
        if isinstance(value, list):
            if not value:
                return None
            hits = []
            for entry in value:
                idx = lookup.get(scalar_text(entry))
                if idx is not None:
                    hits.append(idx)
            return hits
        idx = lookup.get(scalar_text(value))
        return [] if idx is None else [idx]

    def bucket_indices(self, ref: FieldReference) -> List[BucketIndex]:
        cached = self._indices.get(ref)
        if cached is not None:
            return cached

        lookup = self._lookup(ref)
        indices = [self._record_index(record, ref, lookup) for record in self.records]
        self._indices[ref] = indices
        logger.debug("Indexed %d records for field %s", len(indices), ref)
        return indices

    # -----------------------------------------------------------------------
    # Distributions
    # -----------------------------------------------------------------------

    def self_distribution(self, ref: FieldReference) -> DistributionResult:
        variants = self.variant_order(ref)
        freq = [0] * len(variants)
        null_count = 0

        for hits in self.bucket_indices(ref):
            if hits is None:
                null_count += 1
                continue
            for idx in hits:
                freq[idx] += 1

        return DistributionResult(
            variant_order=variants,
            freq=freq,
            perc=percentages(freq, self.total - null_count),
            null_count=null_count,
            total=self.total,
        )

    def _match_index(self, ref: FieldReference, match_value: Any) -> Optional[int]:
        if isinstance(match_value, CategoryEnum):
            match_value = match_value.name
        return self._lookup(ref).get(scalar_text(match_value))

    def conditional_distribution(
        self,
        base: FieldReference,
        secondary: FieldReference,
        match_value: Any,
    ) -> List[int]:
        """
        Distribution of `base` over the records whose `secondary` answer is
        (or, for list answers, contains) `match_value`. Aligned with
        variant_order(base).
        """
        buckets = [0] * len(self.variant_order(base))
        target = self._match_index(secondary, match_value)
        if target is None:
            return buckets

        base_indices = self.bucket_indices(base)
        for hits_secondary, hits_base in zip(self.bucket_indices(secondary), base_indices):
            if not hits_secondary or target not in hits_secondary:
                continue
            for idx in hits_base or []:
                buckets[idx] += 1
        return buckets

    def conditional_percentages(
        self,
        base: FieldReference,
        secondary: FieldReference,
        match_value: Any,
    ) -> List[float]:
        """Conditional buckets as a share of their own sum."""
        buckets = self.conditional_distribution(base, secondary, match_value)
        return percentages(buckets, sum(buckets))
