from .step_10_install_binary import InstallBinaryStep
from .step_20_ensure_config_dir import EnsureConfigDirStep
from .step_30_install_config import InstallConfigStep
from .step_40_install_shutdown_script import InstallShutdownScriptStep
from .step_50_install_unit import InstallUnitStep
from .step_60_reload_supervisor import ReloadSupervisorStep

__all__ = [
    "InstallBinaryStep",
    "EnsureConfigDirStep",
    "InstallConfigStep",
    "InstallShutdownScriptStep",
    "InstallUnitStep",
    "ReloadSupervisorStep",
]
