"""
HMM modeling utilities

This module provides:
- A categorical HMM over several independent categorical variables
  (emission = product of per-variable categorical distributions)
- KMeans-based emission initialization
- A fit boundary that returns a FitOutcome (parameters + decoded states,
  or a ModelFitError) instead of raising
- FittedHMM: immutable record of the fitted parameters with named accessors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from hmmlearn.base import BaseHMM
from hmmlearn.utils import normalize
from sklearn.cluster import KMeans
from sklearn.utils import check_random_state

import config

from .prep_utils import category_levels, encode_observations


class ModelFitError(RuntimeError):
    """EM did not converge or the input made the model degenerate."""


class MultiCategoricalHMM(BaseHMM):
    """
    HMM whose observations are several categorical variables, independent given the state.

    Parameters
    ----------
    n_components : int
        Number of hidden states.
    n_categories : int
        Number of categories per variable (same for all variables).
    emissionprob_prior : float | np.ndarray
        Dirichlet prior on the emission probabilities (1.0 means no prior).

    Attributes
    ----------
    emissionprob_ : np.ndarray, shape (n_components, n_variables, n_categories)
        emissionprob_[i, v, c] = P(variable v == c | state i).
    """

    def __init__(
        self,
        n_components=1,
        n_categories=2,
        startprob_prior=1.0,
        transmat_prior=1.0,
        emissionprob_prior=1.0,
        algorithm="viterbi",
        random_state=None,
        n_iter=10,
        tol=1e-2,
        verbose=False,
        params="ste",
        init_params="ste",
        implementation="log",
    ):
        super().__init__(
            n_components=n_components,
            startprob_prior=startprob_prior,
            transmat_prior=transmat_prior,
            algorithm=algorithm,
            random_state=random_state,
            n_iter=n_iter,
            tol=tol,
            verbose=verbose,
            params=params,
            init_params=init_params,
            implementation=implementation,
        )
        self.n_categories = n_categories
        self.emissionprob_prior = emissionprob_prior

    def _get_n_fit_scalars_per_param(self):
        nc = self.n_components
        nv = self.emissionprob_.shape[1] if hasattr(self, "emissionprob_") else self.n_features
        return {
            "s": nc - 1,
            "t": nc * (nc - 1),
            "e": nc * nv * (self.n_categories - 1),
        }

    def _check_codes(self, X):
        X = np.asarray(X)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2D code matrix, got shape {X.shape}")
        if X.size and (X.min() < 0 or X.max() >= self.n_categories):
            raise ValueError(
                f"Codes must lie in [0, {self.n_categories - 1}], "
                f"got range [{X.min()}, {X.max()}]"
            )
        return X.astype(int)

    def _init(self, X, lengths=None):
        X = self._check_codes(X)
        self.n_features = X.shape[1]
        super()._init(X, lengths)
        random_state = check_random_state(self.random_state)
        if self._needs_init("e", "emissionprob_"):
            self.emissionprob_ = random_state.dirichlet(
                np.ones(self.n_categories), size=(self.n_components, X.shape[1])
            )

    def _check(self):
        super()._check()
        self.emissionprob_ = np.asarray(self.emissionprob_, dtype=float)
        if self.emissionprob_.ndim != 3:
            raise ValueError("emissionprob_ must have shape (n_components, n_variables, n_categories)")
        n_states, _, n_cat = self.emissionprob_.shape
        if n_states != self.n_components:
            raise ValueError(f"emissionprob_ has {n_states} states, expected {self.n_components}")
        if n_cat != self.n_categories:
            raise ValueError(f"emissionprob_ has {n_cat} categories, expected {self.n_categories}")
        if not np.allclose(self.emissionprob_.sum(axis=2), 1.0):
            raise ValueError("emissionprob_ rows must sum to 1")

    def _compute_log_likelihood(self, X):
        X = self._check_codes(X)
        with np.errstate(divide="ignore"):
            log_emission = np.log(self.emissionprob_)
        log_prob = np.zeros((X.shape[0], self.n_components))
        for v in range(X.shape[1]):
            log_prob += log_emission[:, v, X[:, v]].T
        return log_prob

    def _compute_likelihood(self, X):
        return np.exp(self._compute_log_likelihood(X))

    def _initialize_sufficient_statistics(self):
        stats = super()._initialize_sufficient_statistics()
        stats["obs"] = np.zeros_like(self.emissionprob_)
        return stats

    def _accumulate_sufficient_statistics(self, stats, X, lattice, posteriors, fwdlattice, bwdlattice):
        super()._accumulate_sufficient_statistics(
            stats, X, lattice, posteriors, fwdlattice, bwdlattice
        )
        if "e" in self.params:
            X = self._check_codes(X)
            for v in range(X.shape[1]):
                for c in range(self.n_categories):
                    stats["obs"][:, v, c] += posteriors[X[:, v] == c].sum(axis=0)

    def _do_mstep(self, stats):
        super()._do_mstep(stats)
        if "e" in self.params:
            # States with no posterior mass keep all-zero rows; fit_hmm rejects them
            self.emissionprob_ = np.maximum(self.emissionprob_prior - 1 + stats["obs"], 0)
            normalize(self.emissionprob_, axis=2)

    def _generate_sample_from_state(self, state, random_state):
        cdf = np.cumsum(self.emissionprob_[state], axis=1)
        draws = random_state.rand(cdf.shape[0], 1)
        return (cdf < draws).sum(axis=1)


@dataclass(frozen=True)
class FittedHMM:
    """Fitted parameters, read-only once built."""

    startprob: np.ndarray
    transmat: np.ndarray
    emissionprob: np.ndarray
    variables: Tuple[str, ...]
    categories: Dict[str, Tuple[str, ...]]
    log_likelihood: float
    n_iter: int

    def __post_init__(self):
        for name in ("startprob", "transmat", "emissionprob"):
            arr = np.array(getattr(self, name), dtype=float, copy=True)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def from_model(cls, model, variables, categories, log_likelihood):
        return cls(
            startprob=model.startprob_,
            transmat=model.transmat_,
            emissionprob=model.emissionprob_,
            variables=tuple(variables),
            categories={v: tuple(categories[v]) for v in variables},
            log_likelihood=float(log_likelihood),
            n_iter=int(model.monitor_.iter),
        )

    @property
    def n_states(self):
        return self.transmat.shape[0]

    def emission(self, state, variable):
        """P(category | state) for one variable, indexed by category name."""
        v = self.variables.index(variable)
        return pd.Series(
            self.emissionprob[state, v], index=list(self.categories[variable]), name=variable
        )

    def emission_table(self, state):
        """Tidy table of one state's emissions: (variable, category) -> probability."""
        rows = []
        for v, variable in enumerate(self.variables):
            for c, category in enumerate(self.categories[variable]):
                rows.append(
                    {
                        "variable": variable,
                        "category": category,
                        "probability": self.emissionprob[state, v, c],
                    }
                )
        return pd.DataFrame(rows).set_index(["variable", "category"])

    def level_one_probabilities(self, state):
        """P(category index 1 | state) per variable, e.g. P(Yes), P(Stayed)."""
        return {variable: float(self.emissionprob[state, v, 1]) for v, variable in enumerate(self.variables)}

    def transition_table(self, labels=None):
        """Transition matrix as a DataFrame with state labels on both axes."""
        if labels is None:
            labels = [f"State {i}" for i in range(self.n_states)]
        return pd.DataFrame(self.transmat, index=list(labels), columns=list(labels))

    def check_stochastic(self, tol=None):
        """
        Raise ModelFitError unless every probability vector is finite and sums to 1.
        """
        if tol is None:
            tol = config.PROBABILITY_TOLERANCE

        checks = [
            ("initial state probabilities", self.startprob, self.startprob.sum()),
            ("transition matrix rows", self.transmat, self.transmat.sum(axis=1)),
            ("emission probabilities", self.emissionprob, self.emissionprob.sum(axis=2)),
        ]
        for name, values, sums in checks:
            if not np.all(np.isfinite(values)):
                raise ModelFitError(f"Fitted {name} contain non-finite values")
            if np.any(values < 0):
                raise ModelFitError(f"Fitted {name} contain negative values")
            if not np.allclose(sums, 1.0, rtol=0.0, atol=tol):
                raise ModelFitError(
                    f"Fitted {name} do not sum to 1 (sums: {np.round(np.ravel(sums), 6).tolist()}); "
                    "a hidden state probably received no posterior mass"
                )


@dataclass
class FitOutcome:
    """Result of fit_hmm: parameters and decoded states, or a ModelFitError."""

    params: Optional[FittedHMM] = None
    states: Optional[np.ndarray] = None
    error: Optional[ModelFitError] = None
    model: Optional[MultiCategoricalHMM] = field(default=None, repr=False)

    @property
    def succeeded(self):
        return self.error is None and self.params is not None


def kmeans_emission_init(X_codes, n_states, n_categories=2, clip=None, random_state=None):
    """
    Initial emission probabilities from KMeans centres of the 0/1 code matrix.

    For binary variables a cluster centre is the share of code 1 per variable,
    i.e. an estimate of P(level 1 | cluster).

    Returns
    -------
    np.ndarray, shape (n_states, n_variables, 2)
    """
    if n_categories != 2:
        raise ValueError("KMeans emission initialization supports binary variables only")
    if clip is None:
        clip = config.HMM_CONFIG["emission_clip"]
    if random_state is None:
        random_state = config.HMM_CONFIG["random_state"]

    kmeans = KMeans(n_clusters=n_states, random_state=random_state, n_init=10)
    kmeans.fit(np.asarray(X_codes, dtype=float))

    p_one = np.clip(kmeans.cluster_centers_, clip, 1.0 - clip)
    return np.stack([1.0 - p_one, p_one], axis=-1)


def has_converged(model):
    """True if the last log-likelihood gain fell below tol (hitting n_iter does not count)."""
    history = list(model.monitor_.history)
    if len(history) < 2:
        return False
    return (history[-1] - history[-2]) < model.monitor_.tol


def train_hmm(
    X_codes,
    n_states=None,
    n_iter=None,
    tol=None,
    algorithm=None,
    kmeans_init=None,
    random_state=None,
):
    """
    Train a MultiCategoricalHMM on an integer code matrix.

    Parameters
    ----------
    X_codes : np.ndarray
        Code matrix (n_samples, n_variables) with values in {0, 1}.
    n_states : int | None
        Number of hidden states. Default: config.HMM_CONFIG['n_states'].
    n_iter : int | None
        Max EM iterations. Default: config.HMM_CONFIG['n_iter'].
    tol : float | None
        Convergence threshold. Default: config.HMM_CONFIG['tol'].
    algorithm : str | None
        Decoder ('map' or 'viterbi'). Default: config.HMM_CONFIG['algorithm'].
    kmeans_init : bool | None
        Initialize emissions from KMeans. Default: config.HMM_CONFIG['kmeans_init'].
    random_state : int | None
        Random seed. Default: config.HMM_CONFIG['random_state'].

    Returns
    -------
    MultiCategoricalHMM
        Trained model (may not have converged; see has_converged).
    """
    if n_states is None:
        n_states = config.HMM_CONFIG["n_states"]
    if n_iter is None:
        n_iter = config.HMM_CONFIG["n_iter"]
    if tol is None:
        tol = config.HMM_CONFIG["tol"]
    if algorithm is None:
        algorithm = config.HMM_CONFIG["algorithm"]
    if kmeans_init is None:
        kmeans_init = config.HMM_CONFIG["kmeans_init"]
    if random_state is None:
        random_state = config.HMM_CONFIG["random_state"]

    X_codes = np.asarray(X_codes, dtype=int)

    print(f"\nTraining categorical HMM ({n_states} states, {X_codes.shape[1]} variables)...")

    # init_params excludes 'e' when emissions are set from KMeans (not overwritten)
    model = MultiCategoricalHMM(
        n_components=n_states,
        n_categories=2,
        algorithm=algorithm,
        n_iter=n_iter,
        tol=tol,
        random_state=random_state,
        init_params="st" if kmeans_init else "ste",
    )
    if kmeans_init:
        model.emissionprob_ = kmeans_emission_init(X_codes, n_states, random_state=random_state)

    model.fit(X_codes)
    print(f"✓ HMM training completed, iterations: {model.monitor_.iter}")
    return model


def fit_hmm(observations, n_states=None, n_iter=None, tol=None, algorithm=None, random_state=None):
    """
    Fit the HMM on the prepared observation table.

    Model-fit problems never raise from here; they come back as
    FitOutcome.error so the caller can branch on FitOutcome.succeeded.

    Parameters
    ----------
    observations : pd.DataFrame
        Output of prep_utils.prepare_observations.
    n_states, n_iter, tol, algorithm, random_state
        See train_hmm.

    Returns
    -------
    FitOutcome
    """
    variables = list(config.OBSERVATION_COLUMNS)
    X_codes = encode_observations(observations, variables)
    levels = category_levels(observations, variables)

    try:
        model = train_hmm(
            X_codes,
            n_states=n_states,
            n_iter=n_iter,
            tol=tol,
            algorithm=algorithm,
            random_state=random_state,
        )
    except (ValueError, FloatingPointError, np.linalg.LinAlgError) as e:
        return FitOutcome(error=ModelFitError(f"HMM fitting failed: {e}"))

    if not has_converged(model):
        return FitOutcome(
            error=ModelFitError(
                f"EM did not converge within {model.n_iter} iterations "
                f"(tol={model.tol}, last log-likelihoods: {list(model.monitor_.history)})"
            ),
            model=model,
        )

    try:
        log_likelihood = model.score(X_codes)
        if not np.isfinite(log_likelihood):
            raise ModelFitError(f"Non-finite log-likelihood: {log_likelihood}")
        params = FittedHMM.from_model(model, variables, levels, log_likelihood)
        params.check_stochastic()
        states = model.predict(X_codes)
    except ModelFitError as e:
        return FitOutcome(error=e, model=model)
    except (ValueError, FloatingPointError) as e:
        return FitOutcome(error=ModelFitError(f"HMM decoding failed: {e}"), model=model)

    return FitOutcome(params=params, states=np.asarray(states, dtype=int), model=model)


def state_distribution(states, n_states):
    """Count of rows decoded to each state (all states listed, zeros included)."""
    counts = pd.Series(np.asarray(states)).value_counts()
    return counts.reindex(range(n_states), fill_value=0).astype(int)

