"""Pull request title and description composition."""

from collections.abc import Iterable

from zhgit.models.domain import CommitAnalysis, CommitRecord

COMMIT_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore")

CHECKLIST = (
    "Code passes local tests",
    "Commit messages follow the conventions",
    "No breaking changes",
    "Documentation updated (if needed)",
)


def commit_type_histogram(commits: Iterable[CommitRecord]) -> dict[str, int]:
    """Count commits per conventional-commit type.

    A commit counts for the first type its lower-cased subject starts with;
    anything else counts as ``other``.
    """
    histogram = dict.fromkeys((*COMMIT_TYPES, "other"), 0)
    for commit in commits:
        subject = commit.subject.lower()
        kind = next((t for t in COMMIT_TYPES if subject.startswith(t)), "other")
        histogram[kind] += 1
    return histogram


class PullRequestComposer:
    """Render a ``CommitAnalysis`` as a pull request title and Markdown body."""

    @staticmethod
    def compose_title(analysis: CommitAnalysis, source_branch: str, target_branch: str) -> str:
        if analysis.current_commits and not analysis.previous_commits:
            return f"{analysis.current_commits[0].subject} → {target_branch}"
        return f"Merge {analysis.total_count} commit(s) from {source_branch} → {target_branch}"

    @classmethod
    def compose_body(cls, analysis: CommitAnalysis, source_branch: str, target_branch: str) -> str:
        sections = [
            f"# Pull request: {source_branch} → {target_branch}",
            f"## 📋 Summary\n\n{analysis.summary}",
        ]
        if analysis.current_commits:
            sections.append(cls.format_commits(analysis.current_commits, "📈 Current Changes"))
        if analysis.previous_commits:
            sections.append(cls.format_commits(analysis.previous_commits, "📚 Previous Changes"))

        histogram = commit_type_histogram(analysis.all_commits)
        counts = "\n".join(f"- {kind}: {count}" for kind, count in histogram.items() if count)
        sections.append(f"## 📊 Commit Types\n\n{counts}" if counts else "## 📊 Commit Types")

        checklist = "\n".join(f"- [ ] {item}" for item in CHECKLIST)
        sections.append(f"## ✅ Checklist\n\n{checklist}")
        sections.append("---\n*This pull request was generated by zhgit*")
        return "\n\n".join(sections)

    @staticmethod
    def format_commits(commits: Iterable[CommitRecord], heading: str) -> str:
        """Markdown list of commits under a second-level heading."""
        lines = [f"## {heading}", ""]
        for commit in commits:
            lines.append(f"- **{commit.subject}**")
            lines.append(f"  - Author: {commit.author}")
            lines.append(f"  - Date: {commit.timestamp.date().isoformat()}")
            lines.append(f"  - Commit: `{commit.short_hash}`")
        return "\n".join(lines)
