"""Mock job catalog used until listings come from a real source."""

from __future__ import annotations

from collections.abc import Iterable

from core.models import Job

MOCK_JOBS: tuple[Job, ...] = (
    Job(
        id="job-1",
        title="Full Stack AI/ML Engineer",
        company="AI Execution Platform (PE-backed)",
        location="Remote",
        type="remote",
        posted_at="2 days ago",
        source="LinkedIn",
        description=(
            "A small, high-caliber team that embeds with portfolio companies to design and ship "
            "production AI systems, then turns proven playbooks into scalable products.\n\n"
            "What you'll do:\n"
            "- Design and ship production-grade AI systems inside real companies\n"
            "- Build Databricks-based data pipelines, orchestration layers, and governance frameworks\n"
            "- Architect retrieval-augmented generation (RAG) systems with solid context "
            "management, evaluation, and observability"
        ),
        requirements=[
            "Strong foundation in Python, SQL, CI/CD, and modern data engineering practices",
            "Hands-on experience with Databricks",
            "Experience building or maintaining RAG and LLM-based systems",
            "Ability to operate independently without a fully built environment",
            "Experience in startups or lean teams where you wore multiple hats",
        ],
        benefits=["Medical insurance", "Vision insurance", "Dental insurance"],
        match_score=92,
        match_reasons=["RAG & LLM experience", "Python expertise", "Startup background"],
    ),
    Job(
        id="job-2",
        title="Senior Backend Engineer, Developer Platform",
        company="Northwind Cloud",
        location="Austin, TX",
        type="hybrid",
        salary="$170k - $205k",
        posted_at="5 days ago",
        source="Company site",
        description=(
            "Northwind Cloud builds the deployment and observability platform used by several "
            "hundred internal teams. You'll own APIs that provision environments, stream build "
            "logs, and enforce policy across services."
        ),
        requirements=[
            "5+ years building backend services in Python or Go",
            "Experience with event-driven architectures and message queues",
            "Comfort operating services on Kubernetes",
            "Clear written communication and design docs",
        ],
        benefits=["401k match", "Learning budget"],
        match_score=81,
        match_reasons=["Python services", "Platform experience"],
    ),
)


class JobCatalog:
    """Lookup by id over an in-memory list of jobs."""

    def __init__(self, jobs: Iterable[Job] = MOCK_JOBS) -> None:
        self._jobs = {job.id: job for job in jobs}

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())
