"""输入目录接口：为一次运行物化 ansible-runner 输入目录并查询其内容。"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from runner.api.v1.schemas import InputDirCreateRequest, InputDirCreateResponse, InputDirDetailResponse
from runner.application.input_dirs import InputDirService
from runner.domain.enums import InputDirErrorKind
from runner.domain.models import InputDirError

router = APIRouter()
logger = logging.getLogger(__name__)

# 输入类错误归为 400，其余为服务端磁盘问题。
_CLIENT_ERROR_KINDS = {InputDirErrorKind.serialization, InputDirErrorKind.source_read}


def _service(request: Request) -> InputDirService:
    return request.app.state.input_dir_service


@router.post("/input-dirs", response_model=InputDirCreateResponse, status_code=status.HTTP_201_CREATED)
def create_input_dir(
    body: InputDirCreateRequest,
    service: InputDirService = Depends(_service),
) -> InputDirCreateResponse:
    """物化输入目录，同一 run_id 重复调用会覆盖已有文件。"""
    logger.info("create_input_dir requested: run_id=%s", body.run_id or "-")
    try:
        run_id, input_dir = service.prepare(
            run_id=body.run_id,
            parameters=body.parameters,
            env_vars=body.env_vars,
            playbook_path=body.playbook_path,
            role_path=body.role_path,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InputDirError as exc:
        status_code = 400 if exc.kind in _CLIENT_ERROR_KINDS else 500
        raise HTTPException(status_code=status_code, detail={"kind": exc.kind.value, "message": str(exc)}) from exc
    return InputDirCreateResponse(
        run_id=run_id,
        path=str(input_dir.path),
        has_playbook=bool(input_dir.playbook_path),
    )


@router.get("/input-dirs/{run_id}", response_model=InputDirDetailResponse)
def get_input_dir(
    run_id: str,
    service: InputDirService = Depends(_service),
) -> InputDirDetailResponse:
    """查询已物化输入目录；目录内容损坏属于服务端状态问题。"""
    try:
        service.run_dir(run_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        snapshot = service.inspect(run_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        # JSONDecodeError / UnicodeDecodeError
        logger.error("input dir unreadable: %s", exc, extra={"event": "input_dir.inspect.failed", "run_id": run_id})
        raise HTTPException(status_code=500, detail=f"input dir is corrupted: {run_id}") from exc
    return InputDirDetailResponse(
        run_id=snapshot.run_id,
        path=str(snapshot.path),
        parameters=snapshot.parameters,
        env_vars=snapshot.env_vars,
        inventory=snapshot.inventory,
        has_playbook=snapshot.has_playbook,
    )
