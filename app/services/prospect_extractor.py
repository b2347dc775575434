"""Heuristic extractor: rendered page text → prospect candidates."""

import logging

from app.models import ProspectCandidate
from app.services.extraction_rules import (
    BLOCK_SPLIT_PATTERN,
    BOLD_PATTERN,
    HEADING_PATTERN,
    ExtractionProfile,
    clean_company_name,
    get_profile,
    is_common_page_element,
    is_field_line,
    is_non_company_content,
)

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100


class ProspectExtractor:
    """Applies the per-category rule profiles to page text.

    Stateless; one instance can serve any number of runs.
    """

    def extract(
        self,
        text: str,
        source: str,
        category: str,
        industry: str | None = None,
        page_url: str | None = None,
    ) -> list[ProspectCandidate]:
        """Extract candidates from one page.

        Args:
            text: Rendered page text (markdown).
            source: Source tag stamped on every candidate.
            category: Source category selecting the rule profile.
            industry: Requested industry, echoed into ``category``.
            page_url: URL of the page; becomes the website of single-page
                candidates.

        Returns:
            Candidates in page order, capped by the profile's per-page limit.
        """
        if not text or not text.strip():
            return []

        try:
            profile = get_profile(category)
        except KeyError:
            logger.warning(f"No extraction profile for category '{category}'")
            return []

        if profile.segmentation == "lines":
            candidates = self._extract_lines(text, source, profile, industry)
        elif profile.segmentation == "blocks":
            candidates = self._extract_blocks(text, source, profile, industry)
        else:
            candidates = self._extract_page(text, source, profile, industry, page_url)

        if profile.max_per_page is not None:
            candidates = candidates[: profile.max_per_page]

        logger.debug(f"Extracted {len(candidates)} candidate(s) from {source} ({category})")
        return candidates

    def _extract_lines(
        self,
        text: str,
        source: str,
        profile: ExtractionProfile,
        industry: str | None,
    ) -> list[ProspectCandidate]:
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        entries = []
        for i, line in enumerate(lines):
            name = clean_company_name(line)
            if not name or not profile.entry_predicate(name, source):
                continue
            if self._is_acceptable_name(name):
                entries.append((i, name))

        candidates = []
        for position, (i, name) in enumerate(entries):
            # A window never reaches into the next entry
            end = entries[position + 1][0] if position + 1 < len(entries) else len(lines)
            if profile.lookahead is not None:
                end = min(end, i + 1 + profile.lookahead)
            window = lines[i + 1 : end]
            candidates.append(self._build(name, window, source, profile, industry))
        return candidates

    def _extract_blocks(
        self,
        text: str,
        source: str,
        profile: ExtractionProfile,
        industry: str | None,
    ) -> list[ProspectCandidate]:
        candidates = []
        for block in BLOCK_SPLIT_PATTERN.split(text):
            block = block.strip()
            if not block or not profile.entry_predicate(block, source):
                continue

            lines = [line.strip() for line in block.splitlines() if line.strip()]
            name = self._block_name(lines[0])
            if not name or not self._is_acceptable_name(name):
                continue

            window = lines[1:] if profile.lookahead is None else lines[1 : 1 + profile.lookahead]
            candidates.append(self._build(name, window, source, profile, industry))
        return candidates

    def _extract_page(
        self,
        text: str,
        source: str,
        profile: ExtractionProfile,
        industry: str | None,
        page_url: str | None,
    ) -> list[ProspectCandidate]:
        if not profile.entry_predicate(text, source):
            return []

        match = HEADING_PATTERN.search(text)
        name = clean_company_name(match.group(1)) if match else ""
        if not name or not self._is_acceptable_name(name):
            return []

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        candidate = self._build(name, lines, source, profile, industry)
        if page_url:
            candidate.website = page_url
        return [candidate]

    def _block_name(self, first_line: str) -> str:
        heading = HEADING_PATTERN.match(first_line)
        if heading:
            return clean_company_name(heading.group(1))
        bold = BOLD_PATTERN.search(first_line)
        if bold:
            return clean_company_name(bold.group(1))
        return clean_company_name(first_line)

    def _is_acceptable_name(self, name: str) -> bool:
        if len(name) < MIN_NAME_LENGTH or len(name) > MAX_NAME_LENGTH:
            return False
        if is_field_line(name):
            return False
        if is_non_company_content(name) or is_common_page_element(name):
            logger.debug(f"Rejected boilerplate name: {name[:50]}")
            return False
        return True

    def _build(
        self,
        name: str,
        window: list[str],
        source: str,
        profile: ExtractionProfile,
        industry: str | None,
    ) -> ProspectCandidate:
        """Fill fields from the lookahead window, first match per field wins."""
        values: dict[str, str] = {}
        confidence = profile.confidence_for(source)

        for line in window:
            for rule in profile.field_rules:
                if rule.field in values or not rule.applies_to(source):
                    continue
                value = rule.apply(line)
                if value:
                    values[rule.field] = value
                    confidence += rule.confidence_bonus

        return ProspectCandidate(
            name=name,
            email=values.get("email"),
            phone=values.get("phone"),
            address=values.get("address"),
            website=values.get("website"),
            description=values.get("description"),
            category=industry,
            source=source,
            confidence_score=min(confidence, 1.0),
        )
