"""
State labeling utilities

Turn each hidden state's emission profile into a readable tag such as
"Retained Online +Billpay". Labels are for reporting only; they never feed
back into the fitted parameters.
"""

import config

ONLINE_PRIOR = "online_usage_prior_year"
ONLINE_CURRENT = "online_usage_current_year"
BILLPAY_PRIOR = "billpay_usage_prior_year"
BILLPAY_CURRENT = "billpay_usage_current_year"


def retention_descriptor(p_stayed, threshold=None):
    if threshold is None:
        threshold = config.LABEL_THRESHOLD
    return "Retained" if p_stayed > threshold else "Non-Retained"


def online_descriptor(p_online_prior, p_online_current, threshold=None):
    """Online trajectory across the two years."""
    if threshold is None:
        threshold = config.LABEL_THRESHOLD

    prior_online = p_online_prior > threshold
    current_online = p_online_current > threshold

    if prior_online and current_online:
        return "Online"
    if not prior_online and not current_online:
        return "Offline"
    if current_online:
        return "Adopted Online"
    return "Dropped Online"


def billpay_descriptor(p_billpay_prior, p_billpay_current, threshold=None):
    if threshold is None:
        threshold = config.LABEL_THRESHOLD
    if p_billpay_prior > threshold or p_billpay_current > threshold:
        return "+Billpay"
    return ""


def describe_state(level_one_probs, threshold=None):
    """
    Label a single state from its P(level 1) per variable.

    Parameters
    ----------
    level_one_probs : Mapping[str, float]
        Variable name -> P(Yes) (or P(Stayed) for the retention variable),
        e.g. FittedHMM.level_one_probabilities(state).
    threshold : float | None
        Default: config.LABEL_THRESHOLD (comparison is strict).

    Returns
    -------
    str
    """
    retention = retention_descriptor(level_one_probs[config.RETAINED_COLUMN], threshold)
    online = online_descriptor(level_one_probs[ONLINE_PRIOR], level_one_probs[ONLINE_CURRENT], threshold)
    billpay = billpay_descriptor(level_one_probs[BILLPAY_PRIOR], level_one_probs[BILLPAY_CURRENT], threshold)

    # Retained adopters read as "Newly Online"
    if retention == "Retained" and online == "Adopted Online":
        online = "Newly Online"

    return " ".join([retention, online, billpay]).strip()


def resolve_collisions(labels):
    """
    If any two labels are equal, suffix every label with its state index.

    All labels get the suffix, not only the colliding ones.
    """
    labels = list(labels)
    if len(set(labels)) < len(labels):
        return [f"{label} ({i})" for i, label in enumerate(labels)]
    return labels


def label_states(params, threshold=None):
    """
    Derive one label per hidden state of a FittedHMM.

    Returns
    -------
    list[str]
        Distinct labels, indexed by state.
    """
    labels = [
        describe_state(params.level_one_probabilities(state), threshold)
        for state in range(params.n_states)
    ]
    return resolve_collisions(labels)
