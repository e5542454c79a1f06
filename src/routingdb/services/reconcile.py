"""Network and container reconciliation for routingdb."""

from typing import List, Tuple

from routingdb.constants import DB_PORT
from routingdb.errors import ProvisionError, ReconciliationError
from routingdb.models import ContainerAction, ContainerSnapshot, ContainerState, DesiredState

_ACTIONS = {
    ContainerState.ABSENT: (ContainerAction.CREATE,),
    ContainerState.STOPPED_UNATTACHED: (ContainerAction.START, ContainerAction.CONNECT),
    ContainerState.STOPPED_ATTACHED: (ContainerAction.START,),
    ContainerState.RUNNING_UNATTACHED: (ContainerAction.CONNECT,),
    ContainerState.RUNNING_ATTACHED: (),
}


def detect_container_state(snapshot: ContainerSnapshot, network: str) -> ContainerState:
    if not snapshot.exists:
        return ContainerState.ABSENT

    attached = network in snapshot.networks
    if snapshot.running:
        return ContainerState.RUNNING_ATTACHED if attached else ContainerState.RUNNING_UNATTACHED
    return ContainerState.STOPPED_ATTACHED if attached else ContainerState.STOPPED_UNATTACHED


def plan_container_actions(state: ContainerState) -> Tuple[ContainerAction, ...]:
    return _ACTIONS[state]


class ReconcileService:
    """Brings the named network and database container to running+attached."""

    def __init__(self, logger, console, runtime):
        self.logger = logger
        self.console = console
        self.runtime = runtime

    def ensure_network(self, name: str) -> bool:
        """Create ``name`` unless it is already listed. Returns True when created."""
        try:
            if name in self.runtime.list_networks():
                self.logger.info("Network '%s' already exists.", name)
                return False

            self.console.print(f"[blue]Creating network {name}...[/blue]")
            self.runtime.create_network(name)
        except ProvisionError as exc:
            raise ReconciliationError(f"Could not ensure network '{name}': {exc}") from exc

        self.logger.info("Created network '%s'.", name)
        return True

    def container_env(self, desired: DesiredState) -> dict:
        return {
            "POSTGRES_DB": desired.db_name,
            "POSTGRES_USER": desired.db_user,
            "POSTGRES_PASSWORD": desired.db_password,
        }

    def reconcile_container(self, desired: DesiredState) -> List[ContainerAction]:
        name = desired.container_name
        network = desired.network_name

        try:
            snapshot = self.runtime.inspect_container(name)
        except ProvisionError as exc:
            raise ReconciliationError(f"Could not inspect container '{name}': {exc}") from exc

        state = detect_container_state(snapshot, network)
        actions = plan_container_actions(state)
        self.logger.info("Container '%s' is %s.", name, state.value)

        if not actions:
            self.console.print(f"[green]Container {name} is already running on {network}.[/green]")
            return []

        for action in actions:
            try:
                if action is ContainerAction.CREATE:
                    self.console.print(f"[blue]Creating container {name} from {desired.db_image}...[/blue]")
                    self.runtime.create_container(
                        name=name,
                        image=desired.db_image,
                        network=network,
                        env=self.container_env(desired),
                        ports={desired.host_port: DB_PORT},
                    )
                elif action is ContainerAction.START:
                    self.console.print(f"[blue]Starting container {name}...[/blue]")
                    self.runtime.start_container(name)
                elif action is ContainerAction.CONNECT:
                    self.console.print(f"[blue]Attaching container {name} to {network}...[/blue]")
                    self.runtime.connect_network(network, name)
            except ProvisionError as exc:
                raise ReconciliationError(
                    f"Could not {action.value} container '{name}': {exc}"
                ) from exc

        return list(actions)
