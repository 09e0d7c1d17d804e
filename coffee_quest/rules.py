"""Rule-based personalisation.

A handful of if/else rules over the user profile. The output doubles as the
named defaults for provider responses (see coffee_quest.schema) and as the
whole engine when no LLM is configured.
"""

from __future__ import annotations

from coffee_quest.models import (
    ChannelAssets,
    Challenge,
    EmailAsset,
    Experience,
    InAppAsset,
    Progress,
    PushAsset,
    Reward,
    RewardConfig,
    UserProfile,
)

LAPSED_CHALLENGE_DAYS = 7
LAPSED_REWARD_DAYS = 10
HIGH_SPENDER_CART_VALUE = 1500
MASTER_LEVEL = 4

XP_REWARD = 150
BONUS_POINTS = 100
LAPSED_BONUS_POINTS = 250


def _first(items: list[str], fallback: str) -> str:
    return items[0] if items else fallback


def narrative_for(user: UserProfile) -> str:
    name, city, level = user.name, user.city or "your city", user.loyalty.level
    if level <= 2:
        return (
            f"Welcome to the Roastery Realm, {name}. You’ve just unlocked the first gates "
            f"of the Coffee Quest. From the bustle of {city}, your journey begins with simple "
            "beans and big curiosity. Every sip you choose today helps shape your personal brew story."
        )
    if level <= 4:
        return (
            f"{name}, the roastery crew now recognises you as a serious brewer. In the mid-level "
            "chambers, your choices unlock hidden tasting notes and limited micro-lots. Today, "
            "the beans whisper of new experiments waiting in your cart."
        )
    return (
        f"The Roastery Council greets you, {name}. As a high-tier Coffee Keeper, your palate "
        "helps decide the future of upcoming Indian-origin blends. One more challenge completed "
        "today, and a secret batch may be revealed only to you."
    )


def challenge_for(user: UserProfile) -> Challenge:
    name = user.name
    prefs = user.preferences
    fav_drink = _first(prefs.fav_drinks, "latte")
    method = _first(prefs.brew_methods, "french-press")
    lapsed = user.behavior.last_order_days_ago > LAPSED_CHALLENGE_DAYS

    if lapsed:
        title = "Revive Your Brew Streak"
        description = (
            f"Hey {name}, your coffee streak is calling! Explore our latest {prefs.roast} roast "
            f"and add any {fav_drink} blend to your cart. Complete the checkout to revive your "
            "streak and unlock bonus points."
        )
        criteria = "Complete a purchase with any recommended coffee from the dashboard."
    elif user.loyalty.level >= MASTER_LEVEL:
        title = "Brew Master Challenge"
        description = (
            f"You’re already a pro, {name}. Today’s challenge: brew a cup using your {method}, "
            "then explore a new single-origin on our store and add it to your wishlist."
        )
        criteria = "Add at least one new single-origin to your wishlist."
    else:
        title = "Discover Your Signature Cup"
        description = (
            f"Let’s find your perfect brew, {name}. Take today’s quick flavour quiz, then try "
            f"any recommended {fav_drink} from our curated list."
        )
        criteria = "Complete the in-app flavour quiz and view at least one product detail page."

    return Challenge(
        title=title,
        description=description,
        success_criteria=criteria,
        xp_reward=XP_REWARD,
        bonus_points=LAPSED_BONUS_POINTS if lapsed else BONUS_POINTS,
    )


def reward_for(user: UserProfile) -> Reward:
    name = user.name
    pref = user.preferences.reward_preference
    high_spender = user.behavior.typical_cart_value >= HIGH_SPENDER_CART_VALUE
    lapsed = user.behavior.last_order_days_ago > LAPSED_REWARD_DAYS

    if pref == "discount":
        discount = 20 if high_spender else 10
        return Reward(
            type="discount",
            label=f"{discount}% off on your next bag",
            code=f"BREW{discount}",
            description=(
                f"Nice going, {name}! Use this personalised code to get {discount}% off "
                "on any coffee beans in your next order."
            ),
            conditions="Valid for 3 days on coffee beans only.",
        )

    if pref == "exclusive-content":
        return Reward(
            type="exclusive-content",
            label="Unlock a Guided Brew Session",
            description=(
                "You’ve unlocked an exclusive step-by-step brew guide tailored to your taste "
                "profile. Learn how to perfect your next pour-over in under 10 minutes."
            ),
            conditions="Available in your ‘Brew Academy’ section.",
        )

    if pref == "early-access" or user.loyalty.level >= MASTER_LEVEL:
        return Reward(
            type="early-access",
            label="Early Access: Limited Single-Origin",
            description=(
                f"Because your taste is legendary, {name}, you get early access to our next "
                "limited single-origin drop. Reserve your bag before it goes public."
            ),
            conditions="Limited quantity; early access window 48 hours.",
        )

    if lapsed:
        return Reward(
            type="comeback",
            label="Welcome Back Perk",
            code="WELCOME-BACK",
            description=(
                f"We’ve missed you, {name}. Here’s free shipping on your next order if you "
                "complete today’s quest."
            ),
            conditions="Valid for 1 order over ₹500.",
        )

    return Reward(
        type="badge",
        label="Roastery Explorer Badge",
        description=(
            "You’ve earned a new profile badge for completing today’s quest. "
            "Flaunt it in the community leaderboard."
        ),
        conditions="Visible on your profile immediately.",
    )


def progress_for(user: UserProfile, challenge: Challenge) -> Progress:
    """Simulated progression after completing today's challenge."""
    return Progress(
        level=user.loyalty.level,
        points=user.loyalty.points + challenge.bonus_points,
        streak_days=user.loyalty.streak_days + 1,
    )


def build_experience(user: UserProfile) -> Experience:
    challenge = challenge_for(user)
    return Experience(
        user=user.summary(),
        narrative=narrative_for(user),
        challenge=challenge,
        reward=reward_for(user),
        progress=progress_for(user, challenge),
    )


def build_channel_assets(experience: Experience, brand_name: str = "Roastery Realm") -> ChannelAssets:
    """Plain-template marketing copy for an experience."""
    name = experience.user.name
    challenge = experience.challenge
    reward = experience.reward
    code_line = f" Use code {reward.code}." if reward.code else ""

    return ChannelAssets(
        email=EmailAsset(
            subject=f"{name}, today’s Coffee Quest: {challenge.title}",
            preview_text=f"Complete it and unlock {reward.label}.",
            body_text=(
                f"Hi {name},\n\n{experience.narrative}\n\n"
                f"Today’s challenge: {challenge.description}\n\n"
                f"Your reward: {reward.label}. {reward.description}{code_line}\n"
                f"{reward.conditions}\n\n— The {brand_name} team"
            ),
        ),
        push=PushAsset(
            title=challenge.title,
            body=f"{name}, finish today’s quest to unlock {reward.label}.",
        ),
        in_app=InAppAsset(
            heading=challenge.title,
            body=f"{challenge.description} Reward: {reward.label}.",
            cta_label="Start quest",
        ),
        reward_config=RewardConfig(
            internal_name=_internal_name(reward.label, reward.code),
            type=reward.type,
            value=reward.label,
            conditions=reward.conditions,
            expiry_days=3 if reward.type == "discount" else 7,
        ),
    )


def _internal_name(label: str, code: str | None) -> str:
    if code:
        return code.lower()
    words = "".join(c if c.isalnum() else " " for c in label.lower()).split()
    return "-".join(words) or "quest-reward"
