from skill_linker.coordinator import LinkCoordinator
from skill_linker.errors import SkillLinkerError
from skill_linker.models import LinkStatus, ProjectConfig, ProjectStatusRow, ProjectSyncStatus


class StatusService:
    def __init__(self, coordinator: LinkCoordinator) -> None:
        self.coordinator = coordinator

    def build_project_status(self) -> list[ProjectStatusRow]:
        return [self._project_status(project) for project in self.coordinator.store.projects]

    def _project_status(self, project: ProjectConfig) -> ProjectStatusRow:
        if not project.path:
            return ProjectStatusRow(
                name=project.name,
                path="",
                status=ProjectSyncStatus.ERROR,
                detail="project path not set",
            )

        links = self.coordinator.environment.links
        try:
            if not links.path_exists(project.path):
                return ProjectStatusRow(
                    name=project.name,
                    path=project.path,
                    status=ProjectSyncStatus.ERROR,
                    detail="project path missing",
                )
            desired = self.coordinator.resolve_project_entries(project)
            records = self.coordinator.links_for(project.path)
        except SkillLinkerError as exc:
            return ProjectStatusRow(
                name=project.name,
                path=project.path,
                status=ProjectSyncStatus.ERROR,
                detail=str(exc),
            )

        observed = {record.name: record for record in records}
        desired_names = {entry.name for entry in desired}
        missing = tuple(
            entry.name
            for entry in desired
            if entry.name not in observed
            or observed[entry.name].status == LinkStatus.INACTIVE
            or (
                observed[entry.name].status.is_managed
                and observed[entry.name].target != entry.source_path
            )
        )
        stale = tuple(
            record.name
            for record in records
            if record.status.is_managed and record.name not in desired_names
        )
        broken = tuple(record.name for record in records if record.status == LinkStatus.BROKEN)
        conflicts = tuple(
            entry.name
            for entry in desired
            if entry.name in observed and observed[entry.name].status == LinkStatus.DIRECT
        )

        if not (missing or stale or broken or conflicts):
            return ProjectStatusRow(
                name=project.name,
                path=project.path,
                status=ProjectSyncStatus.SYNCED,
                detail=f"{len(desired)} skills linked",
            )

        issues: list[str] = []
        if missing:
            issues.append(f"{len(missing)} missing")
        if stale:
            issues.append(f"{len(stale)} stale")
        if broken:
            issues.append(f"{len(broken)} broken")
        if conflicts:
            issues.append(f"{len(conflicts)} conflict")
        return ProjectStatusRow(
            name=project.name,
            path=project.path,
            status=ProjectSyncStatus.DRIFT,
            detail=", ".join(issues),
            missing=missing,
            stale=stale,
            broken=broken,
            conflicts=conflicts,
        )
