"""
Job board abstraction and the per-source search loop.

This module defines:
- JobBoard: the contract a board implements (listing URL, detail URL, rules, pre-search action)
- ProfileBoard: a JobBoard driven entirely by a SourceProfile
- SourceSearchLoop: paginates one board (listing page → job cards → detail pages)
  until the caller's limit is met or the board runs out of results
"""

from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import List, Optional

from bs4 import BeautifulSoup
from loguru import logger
from tqdm import tqdm

from jobtrawl.contexts.scraping.actions import PreSearchAction
from jobtrawl.contexts.scraping.errors import NetworkCircuitBreakerException, NetworkFailure
from jobtrawl.contexts.scraping.extraction import extract, extract_all, parse_html
from jobtrawl.contexts.scraping.models import Job, SearchParams
from jobtrawl.contexts.scraping.profiles import SourceProfile, SourceRules
from jobtrawl.contexts.scraping.requests import PageFetcher
from jobtrawl.contexts.scraping.transforms import parse_posted_date
from jobtrawl.contexts.scraping.urls import build_detail_url, build_listing_url


class JobBoard(ABC):
    """Abstract base class for a job board the search loop can paginate."""

    name: str

    @abstractmethod
    def listing_url(self, params: SearchParams, page: Optional[int]) -> str:
        """URL of the listing page for a 0-based page index."""
        pass

    @abstractmethod
    def detail_url(self, job_id: str) -> str:
        pass

    @property
    @abstractmethod
    def rules(self) -> SourceRules:
        pass

    @property
    def pre_search_action(self) -> Optional[PreSearchAction]:
        return None


class ProfileBoard(JobBoard):
    """JobBoard whose behaviour comes from a SourceProfile."""

    def __init__(self, profile: SourceProfile):
        self.profile = profile
        self.name = profile.name

    def listing_url(self, params: SearchParams, page: Optional[int]) -> str:
        return build_listing_url(self.profile, params, page)

    def detail_url(self, job_id: str) -> str:
        return build_detail_url(self.profile, job_id)

    @property
    def rules(self) -> SourceRules:
        return self.profile.rules

    @property
    def pre_search_action(self) -> Optional[PreSearchAction]:
        return self.profile.pre_search_action


class LoopState(str, Enum):
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    PAGINATING = "paginating"
    DONE = "done"
    FAILED = "failed"


def _single_line(value: Optional[str]) -> str:
    return " ".join((value or "").split())


class SourceSearchLoop:
    """
    Search one board, page by page.

    Pages are fetched strictly in order starting at params.offset. Each page's
    job cards are extracted and every card's detail page is fetched for the
    description. The loop stops when:
    - params.limit jobs have been collected (no detail page is fetched past it)
    - a listing page has no job cards (boards expose no total count)
    - params.single_page is set and one page has been read
    - a page had job cards but none of them produced a job

    Rate limits, blocks, listing page failures and configuration errors end the
    loop in the FAILED state and propagate. A detail page that fails with a
    plain NetworkFailure only costs that one job.
    """

    def __init__(
        self,
        board,
        fetcher: PageFetcher,
        show_progress: bool = False,
        today: Optional[date] = None,
    ):
        self.board = ProfileBoard(board) if isinstance(board, SourceProfile) else board
        self.fetcher = fetcher
        self.show_progress = show_progress
        self.today = today

        self.state = LoopState.FETCHING
        self.pages_fetched = 0
        self.detail_fetches = 0

    def run(self, params: SearchParams) -> List[Job]:
        jobs: List[Job] = []
        self.pages_fetched = 0
        self.detail_fetches = 0

        if params.limit == 0:
            self.state = LoopState.DONE
            return jobs

        page = params.offset
        actions_taken = False

        try:
            while len(jobs) < params.limit:
                self.state = LoopState.FETCHING
                html = self.fetcher.fetch(self.board.listing_url(params, page))
                self.pages_fetched += 1

                if not actions_taken:
                    html = self._run_pre_search_action(html)
                    actions_taken = True

                self.state = LoopState.EXTRACTING
                cards = self._job_cards(html)
                logger.debug(f"[{self.board.name}] {len(cards):-3} job cards on page {page}")

                if not cards:
                    logger.info(f"[{self.board.name}] No job cards on page {page}, end of results")
                    break

                page_jobs = 0
                for card in tqdm(cards, desc=self.board.name, leave=False, disable=not self.show_progress):
                    job = self._build_job(card)
                    if job is None:
                        continue
                    jobs.append(job)
                    page_jobs += 1
                    if len(jobs) >= params.limit:
                        break

                if params.single_page:
                    break

                # Cards that never yield a job usually mean the board's markup drifted
                if page_jobs == 0:
                    logger.warning(
                        f"[{self.board.name}] {len(cards)} job cards on page {page} but none usable, stopping"
                    )
                    break

                self.state = LoopState.PAGINATING
                page += 1

        except Exception:
            self.state = LoopState.FAILED
            raise

        self.state = LoopState.DONE
        logger.debug(
            f"[{self.board.name}] {len(jobs)} jobs from {self.pages_fetched} page(s), "
            f"{self.detail_fetches} detail fetches"
        )
        return jobs

    def _run_pre_search_action(self, html: str) -> str:
        action = self.board.pre_search_action
        if action is None:
            return html

        logger.debug(f"[{self.board.name}] Running pre-search action {action}")
        action.run(self.fetcher)

        # Interactive fetchers re-read the page once the action has changed it
        page_content = getattr(self.fetcher, "page_content", None)
        return page_content() if page_content is not None else html

    def _job_cards(self, html: str) -> List[BeautifulSoup]:
        # Each card becomes its own fragment so card rules can match the card
        # element itself; the listing document is dropped once this returns.
        document = parse_html(html)
        return [parse_html(str(card)) for card in extract_all(document, self.board.rules.card, every_match=True)]

    def _build_job(self, card: BeautifulSoup) -> Optional[Job]:
        rules = self.board.rules

        job_id = extract(card, rules.id, today=self.today)
        if not job_id:
            logger.warning(f"[{self.board.name}] Skipping job card without an id")
            return None
        job_id = job_id.strip()

        url = self.board.detail_url(job_id)
        self.detail_fetches += 1
        try:
            detail_html = self.fetcher.fetch(url)
        except NetworkCircuitBreakerException:
            raise
        except NetworkFailure as e:
            logger.warning(f"[{self.board.name}] Skipping job {job_id}, detail page failed: {e}")
            return None

        description = extract(parse_html(detail_html), rules.description, today=self.today)
        date_text = extract(card, rules.date_posted, today=self.today) if rules.date_posted else None

        return Job(
            id=job_id,
            title=_single_line(extract(card, rules.title, today=self.today)),
            company=_single_line(extract(card, rules.company, today=self.today)),
            location=_single_line(extract(card, rules.location, today=self.today)),
            description=description or "",
            url=url,
            date_posted=parse_posted_date(date_text, today=self.today),
            source=self.board.name,
        )
