"""
The :mod:`larinf` module computes least angle regression paths and exact
post-selection inference for the variables they select.
"""

from ._auxiliary import asymp_pval, covtest_pval, spacing_pval
from ._estimator import SelectiveLars
from ._inference import LarInference, estimate_sigma, infer
from ._least_angle import (LarPath, build_path, coef_path, predict_path,
                           standardize)
from ._polyhedral import poly_int, poly_pval, tnorm_surv, truncation_limits
from ._qr_update import QRMaintainer
from ._stopping import AicStop, aic_stop, forward_stop

__version__ = '0.1'

__all__ = ['AicStop',
           'LarInference',
           'LarPath',
           'QRMaintainer',
           'SelectiveLars',
           'aic_stop',
           'asymp_pval',
           'build_path',
           'coef_path',
           'covtest_pval',
           'estimate_sigma',
           'forward_stop',
           'infer',
           'poly_int',
           'poly_pval',
           'predict_path',
           'spacing_pval',
           'standardize',
           'tnorm_surv',
           'truncation_limits']
