"""
版本比对

比较本地注册表与远端目录，生成每个模组的更新决策。
版本号按字符串精确比较，不识别语义化版本。
"""

from typing import Dict, List

from modkeeper.models import Registry, RemotePackageVersion, UpdateDecision


def diff(
    registry: Registry, catalog: Dict[str, RemotePackageVersion]
) -> List[UpdateDecision]:
    """
    为远端目录中的每个模组生成更新决策

    本地已安装但远端缺失的模组不会出现在结果中。结果顺序不作保证。
    """
    decisions = []
    for name, remote in catalog.items():
        record = registry.get(name)
        current_version = record.version if record else None
        is_new = current_version is None
        decisions.append(
            UpdateDecision(
                name=name,
                current_version=current_version,
                remote_version=remote.version,
                needs_update=is_new or current_version != remote.version,
                is_new=is_new,
                download_url=remote.download_url,
                size=remote.size,
            )
        )
    return decisions


def pending(decisions: List[UpdateDecision]) -> List[UpdateDecision]:
    """筛选需要更新的决策"""
    return [d for d in decisions if d.needs_update]
