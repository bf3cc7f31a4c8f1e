from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class RepoInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    default_branch: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

class CommitAuthor(BaseModel):
    login: str = "unknown"
    name: str = "Unknown"

class Commit(BaseModel):
    sha: str
    message: str
    author: CommitAuthor = Field(default_factory=CommitAuthor)
    date: datetime
    files: Optional[List[str]] = None  # only populated by ref comparison

    @property
    def first_line(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

class PullRequest(BaseModel):
    number: int
    title: str
    body: str = ""
    author: str = "unknown"
    merged_at: datetime
    labels: List[str] = []

class DateRange(BaseModel):
    since: datetime
    until: datetime

class ContributorStats(BaseModel):
    login: str
    name: str
    commit_count: int = 0
    pr_count: int = 0
    files: List[str] = []
    recent_messages: List[str] = []

    @property
    def total(self) -> int:
        return self.commit_count + self.pr_count

class AuthenticatedUser(BaseModel):
    login: str
    name: Optional[str] = None

class RateLimitStatus(BaseModel):
    remaining: int
    reset: datetime

class PreparedReport(BaseModel):
    prompt: Optional[str] = None
    commit_count: int = 0
    pr_count: int = 0
    empty_message: Optional[str] = None  # set when there is nothing to send
