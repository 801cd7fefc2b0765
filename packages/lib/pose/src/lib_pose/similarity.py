"""姿勢同士の類似度計算"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.spatial import procrustes


def compute_disparity(
    ref_points: np.ndarray, query_points: np.ndarray
) -> Optional[float]:
    """同じ関節順に並んだ 2 つの点群の Procrustes disparity を返す。

    平行移動・拡大縮小・回転（鏡映を含む）を除いた残差で、0.0 が完全一致。
    計算できない場合（点数不足・全点が同一座標など）は None を返す。
    """
    if ref_points is None or query_points is None:
        return None

    if ref_points.shape != query_points.shape or ref_points.shape[0] < 2:
        return None

    if not (np.all(np.isfinite(ref_points)) and np.all(np.isfinite(query_points))):
        return None

    try:
        _, _, disparity = procrustes(ref_points, query_points)
    except ValueError:
        return None

    return float(disparity)
