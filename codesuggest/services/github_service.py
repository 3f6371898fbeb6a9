"""
GitHub API integration service.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import structlog
from github import Github, GithubException

from codesuggest.models import FileDiff

logger = structlog.get_logger(__name__)


class GitHubService:
    """Service for fetching pull request file diffs from GitHub."""

    def __init__(self, token: Optional[str] = None, client: Optional[Github] = None, include_full_content: bool = False):
        """
        Args:
            token: GitHub token used when no client is given.
            client: Pre-built PyGithub client.
            include_full_content: Also fetch each file's content at the head commit.
        """
        if client is not None:
            self.github = client
        elif token:
            self.github = Github(token)
        else:
            self.github = None
        self.include_full_content = include_full_content
        self.executor = ThreadPoolExecutor(max_workers=5)

    async def get_file_diffs(self, event) -> List[FileDiff]:
        """File diffs of the pull request named by a change request event."""
        return await self.fetch_pr_file_diffs(event.repo_full_name, event.number)

    async def fetch_pr_file_diffs(self, repo_full_name: str, pr_number: int) -> List[FileDiff]:
        """
        Fetch per-file diffs of a pull request.

        Args:
            repo_full_name: Repository as "owner/name".
            pr_number: Pull request number.

        Returns:
            File diffs in the order GitHub lists them.
        """
        if not self.github:
            raise RuntimeError("GitHub token not configured. Set GITHUB_TOKEN in .env")

        # Run synchronous GitHub API calls in executor
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor,
            self._fetch_pr_file_diffs_sync,
            repo_full_name,
            pr_number,
        )

    def _fetch_pr_file_diffs_sync(self, repo_full_name: str, pr_number: int) -> List[FileDiff]:
        repo = self.github.get_repo(repo_full_name)
        pr = repo.get_pull(pr_number)

        file_diffs = []
        for changed in pr.get_files():
            # Removed files have nothing to review; binary files carry no patch
            if changed.status == "removed" or not changed.patch:
                continue

            full_content = None
            if self.include_full_content:
                full_content = self._fetch_content(repo, changed.filename, pr.head.sha)

            file_diffs.append(FileDiff(
                file_path=changed.filename,
                diff=changed.patch,
                full_content=full_content,
            ))

        logger.info(
            "Fetched pull request diffs",
            repo=repo_full_name,
            pr_number=pr_number,
            files=len(file_diffs),
        )
        return file_diffs

    def _fetch_content(self, repo, path: str, ref: str) -> Optional[str]:
        try:
            contents = repo.get_contents(path, ref=ref)
            return contents.decoded_content.decode("utf-8")
        except (GithubException, UnicodeDecodeError, AttributeError) as e:
            logger.warning("Could not fetch file content", path=path, error=str(e))
            return None

    def close(self) -> None:
        self.executor.shutdown(wait=False)
