"""
FastAPI 后端服务
提供旋转门压缩算法的 REST API 接口
"""

import os
import uuid
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Literal
from datetime import datetime

from fastapi import FastAPI, HTTPException, BackgroundTasks
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import pandas as pd

from swingdoor import compress_series, get_available_algorithms

try:
    # 尝试相对导入（当作为包运行时）
    from .data_loader import DataLoader
except ImportError:
    # 如果相对导入失败，使用绝对导入（当直接运行脚本时）
    from data_loader import DataLoader

logger = logging.getLogger(__name__)


# ============================================================================
# 数据模型 (Data Models)
# ============================================================================

class AlgorithmParams(BaseModel):
    """算法参数模型"""
    deviation: float = Field(1.0, ge=0, description="y方向允许偏差")
    max_delta_x: Optional[float] = Field(None, ge=0, description="x方向最大间隔，为空表示不限制")
    min_delta_x: Optional[float] = Field(None, ge=0, description="x方向最小间隔，为空表示不启用")
    strategy: Literal['indexed', 'sequential'] = Field('indexed', description="遍历方式")


class Point(BaseModel):
    """数据点模型"""
    x: float
    y: float


class InlineCompressionRequest(BaseModel):
    """直接提交数据点的压缩请求"""
    points: List[Point] = Field(..., description="按x非递减排列的数据点")
    algorithm: str = Field('swinging_door', description="算法名称")
    params: AlgorithmParams = Field(default_factory=AlgorithmParams, description="算法参数")


class CompressionRequest(BaseModel):
    """数据集压缩请求模型"""
    dataset_name: str = Field(..., description="数据集名称")
    algorithms: List[str] = Field(default_factory=lambda: ['swinging_door'], description="要运行的算法列表")
    params: Dict[str, AlgorithmParams] = Field(default_factory=dict, description="各算法参数")
    max_samples: Optional[int] = Field(None, ge=1, description="最大采样数量")


class JobStatus(BaseModel):
    """任务状态模型"""
    job_id: str
    status: str  # 'pending', 'running', 'completed', 'failed'
    created_at: datetime
    completed_at: Optional[datetime] = None
    progress: float = 0.0
    message: Optional[str] = None


class CompressionResult(BaseModel):
    """压缩结果模型"""
    algorithm: str
    compression_ratio: float
    elapsed_time: float
    metrics: Dict[str, Any]
    compressed_series: List[Dict[str, Any]]


# ============================================================================
# 全局变量和任务管理 (Global Variables & Task Management)
# ============================================================================

app = FastAPI(
    title="旋转门压缩服务",
    description="基于旋转门算法的时间序列压缩服务",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8080", "http://127.0.0.1:8080"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DEFAULT_DATA_ROOT = Path(__file__).resolve().parent.parent / "demo_data"
data_loader = DataLoader(os.environ.get("SWINGDOOR_DATA_ROOT", str(DEFAULT_DATA_ROOT)))

# 任务存储
jobs: Dict[str, JobStatus] = {}
results: Dict[str, List[CompressionResult]] = {}


# ============================================================================
# 辅助函数 (Helper Functions)
# ============================================================================

def series_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """把压缩结果DataFrame转换为响应格式"""
    records = []
    for row in df.itertuples(index=False):
        record = {'x': float(row.X), 'y': float(row.Y), 'orig_idx': int(row.orig_idx)}
        timestamp = getattr(row, 'Timestamp', None)
        if timestamp is not None and not pd.isna(timestamp):
            record['timestamp'] = timestamp.isoformat()
        records.append(record)
    return records


def run_algorithm_on(df: pd.DataFrame, algorithm: str, params: AlgorithmParams) -> CompressionResult:
    result = compress_series(df, algorithm, params.model_dump(), verbose=False)
    return CompressionResult(
        algorithm=result.algorithm,
        compression_ratio=result.compression_ratio,
        elapsed_time=result.elapsed_time,
        metrics=result.metrics,
        compressed_series=series_to_records(result.compressed)
    )


def validate_algorithms(algorithms: List[str]) -> None:
    valid_algorithms = list(get_available_algorithms())
    invalid_algorithms = [alg for alg in algorithms if alg not in valid_algorithms]
    if invalid_algorithms:
        raise HTTPException(
            status_code=400,
            detail=f"不支持的算法: {invalid_algorithms}. 支持的算法: {valid_algorithms}"
        )


def run_compression_job(job_id: str, request: CompressionRequest):
    """后台执行压缩任务"""
    try:
        jobs[job_id].status = 'running'
        jobs[job_id].message = '正在加载数据集...'

        df = data_loader.load_dataset(
            dataset_name=request.dataset_name,
            max_samples=request.max_samples
        )

        jobs[job_id].message = f'数据集加载完成，共 {len(df)} 个点'

        compression_results = []
        total_algorithms = len(request.algorithms)

        for i, algorithm in enumerate(request.algorithms):
            jobs[job_id].progress = (i / total_algorithms) * 100
            jobs[job_id].message = f'正在运行算法: {algorithm}'

            params = request.params.get(algorithm, AlgorithmParams())
            compression_results.append(run_algorithm_on(df, algorithm, params))

        results[job_id] = compression_results

        jobs[job_id].status = 'completed'
        jobs[job_id].completed_at = datetime.now()
        jobs[job_id].progress = 100.0
        jobs[job_id].message = '所有算法执行完成'

    except (OSError, ValueError) as e:
        jobs[job_id].status = 'failed'
        jobs[job_id].completed_at = datetime.now()
        jobs[job_id].message = f'任务执行失败: {str(e)}'
        logger.exception("任务 %s 失败", job_id)


def get_finished_results(job_id: str):
    """返回已完成任务的结果；任务未完成时返回202响应"""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="任务不存在")

    job = jobs[job_id]
    if job.status != 'completed':
        return JSONResponse(
            status_code=202,
            content={"status": job.status, "message": job.message, "progress": job.progress}
        )

    if job_id not in results:
        raise HTTPException(status_code=500, detail="结果数据丢失")

    return results[job_id]


# ============================================================================
# API 路由 (API Routes)
# ============================================================================

@app.get("/")
async def root():
    """根路径"""
    return {"message": "旋转门压缩服务", "version": "1.0.0"}


@app.get("/algorithms")
async def get_algorithms():
    """获取可用算法及默认参数"""
    return {
        "algorithms": [
            {
                'key': key,
                'display_name': info['display_name'],
                'default_params': info['default_params'],
                'param_help': info['param_help']
            }
            for key, info in get_available_algorithms().items()
        ]
    }


@app.get("/datasets")
async def get_datasets():
    """获取可用数据集列表"""
    return {"datasets": data_loader.get_datasets()}


@app.post("/compress", response_model=CompressionResult)
def compress_points(request: InlineCompressionRequest):
    """
    直接压缩请求中的数据点

    数据点需按x非递减排列，同步返回压缩结果和评估指标。
    """
    validate_algorithms([request.algorithm])

    df = pd.DataFrame([p.model_dump() for p in request.points], columns=['x', 'y'])
    df = df.rename(columns={'x': 'X', 'y': 'Y'}).astype(float)

    try:
        return run_algorithm_on(df, request.algorithm, request.params)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/run", response_model=JobStatus)
async def run_compression(request: CompressionRequest, background_tasks: BackgroundTasks):
    """
    提交数据集压缩任务

    支持批量运行多个算法，每个算法可以有独立的参数。
    返回任务 ID，可用于查询结果。
    """
    validate_algorithms(request.algorithms)

    job_id = str(uuid.uuid4())
    job = JobStatus(
        job_id=job_id,
        status='pending',
        created_at=datetime.now(),
        message='任务已提交，等待执行'
    )

    jobs[job_id] = job
    background_tasks.add_task(run_compression_job, job_id, request)

    return job


@app.get("/jobs/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str):
    """获取任务状态"""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="任务不存在")

    return jobs[job_id]


@app.get("/results/{job_id}")
async def get_compression_results(job_id: str):
    """获取压缩结果"""
    finished = get_finished_results(job_id)
    if isinstance(finished, JSONResponse):
        return finished

    return {"results": [result.model_dump() for result in finished]}


@app.get("/metrics/{job_id}")
async def get_compression_metrics(job_id: str):
    """获取压缩评估指标"""
    finished = get_finished_results(job_id)
    if isinstance(finished, JSONResponse):
        return finished

    return {"metrics": [{**result.metrics, 'elapsed_time': result.elapsed_time} for result in finished]}


@app.delete("/jobs/{job_id}")
async def delete_job(job_id: str):
    """删除任务及其结果"""
    jobs.pop(job_id, None)
    results.pop(job_id, None)

    return {"message": "任务已删除"}


# ============================================================================
# 启动服务器 (Server Startup)
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
