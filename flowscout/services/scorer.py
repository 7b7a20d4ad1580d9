# services/scorer.py
from __future__ import annotations

from typing import NamedTuple

from flowscout.models.token import PresentFlow, TokenReport

SM_NET_HIGH_USD = 1_000_000
SM_NET_MID_USD = 500_000
BUY_SELL_RATIO = 3.0
FLOW_AVG_MULTIPLE = 3.0
FLOW_MIN_NET_USD = 100_000
WHALE_NET_USD = 5_000_000
PRICE_MOVE_PCT = 10.0

RATIO_SEGMENTS = ("Smart Traders", "Whales")


class InterestScore(NamedTuple):
    score: int
    signals: list[str]


def score_report(report: TokenReport) -> InterestScore:
    """
    Additive "tweetworthiness" score for a report.

    Every rule is checked; signals stack. Segments without data never score.
    """
    score = 0
    signals: list[str] = []

    buy_sell = report.smart_money.buy_sell
    if buy_sell is not None:
        net = buy_sell.net_flow_usd
        direction = "buying" if net >= 0 else "selling"
        if abs(net) >= SM_NET_HIGH_USD:
            score += 30
            signals.append(f"SM net {direction} ${abs(net) / 1e6:.1f}M")
        elif abs(net) >= SM_NET_MID_USD:
            score += 15
            signals.append(f"SM net {direction} ${abs(net) / 1e3:.0f}K")

        buyers, sellers = buy_sell.buyer_count, buy_sell.seller_count
        if buyers > 0 and sellers > 0:
            ratio = buyers / sellers
            if ratio >= BUY_SELL_RATIO:
                score += 20
                signals.append(f"{ratio:.1f}:1 buy/sell ratio")
            elif ratio <= 1 / BUY_SELL_RATIO:
                score += 20
                signals.append(f"{1 / ratio:.1f}:1 sell/buy ratio")

    for flow in report.flows:
        if not isinstance(flow, PresentFlow):
            continue
        if flow.avg_flow_usd == 0 or flow.wallet_count == 0:
            continue

        ratio = abs(flow.net_flow_usd / flow.avg_flow_usd)
        if ratio < FLOW_AVG_MULTIPLE or abs(flow.net_flow_usd) < FLOW_MIN_NET_USD:
            continue

        if flow.name in RATIO_SEGMENTS:
            score += 25
            direction = "inflow" if flow.net_flow_usd >= 0 else "outflow"
            signals.append(f"{flow.name} {ratio:.1f}x avg {direction}")
        elif flow.name == "Exchanges" and flow.net_flow_usd < 0:
            # tokens leaving exchanges
            score += 15
            signals.append(f"Exchange outflow {ratio:.1f}x avg")

    whales = report.flow("Whales")
    if isinstance(whales, PresentFlow) and abs(whales.net_flow_usd) >= WHALE_NET_USD:
        score += 20
        direction = "accumulation" if whales.net_flow_usd >= 0 else "distribution"
        signals.append(f"Whale {direction} ${abs(whales.net_flow_usd) / 1e6:.1f}M")

    change = report.price_change_24h
    if change is not None and abs(change) >= PRICE_MOVE_PCT:
        score += 10
        direction = "up" if change >= 0 else "down"
        signals.append(f"Price {direction} {abs(change):.1f}%")

    return InterestScore(score=score, signals=signals)
