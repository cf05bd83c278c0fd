from .activity import get_activity_feed, get_activity_snapshot, get_company_analytics, get_realtime_stats
from .badges import award_badges, get_user_badges
from .checkin import (
    get_check_in_for_day,
    get_check_in_stats,
    get_todays_check_in,
    get_todays_check_ins,
    get_user_check_ins,
    perform_check_in,
    write_check_in,
)
from .config import get_active_config, update_company_config
from .qr_codes import checkin_url, get_active_qr_code, render_qr_svg, rotate_qr_code, validate_qr_code
from .rewards import (
    approve_redemption,
    create_reward,
    deactivate_reward,
    fulfill_redemption,
    list_redemptions,
    list_rewards,
    redeem_reward,
    reject_redemption,
    update_reward,
)
from .users import (
    adjust_points,
    get_leaderboard,
    get_point_history,
    get_user_state,
    list_users,
    register_user,
    update_user_state,
    set_user_status,
)

__all__ = [
    # activity
    "get_activity_feed",
    "get_activity_snapshot",
    "get_company_analytics",
    "get_realtime_stats",
    # badges
    "award_badges",
    "get_user_badges",
    # checkin
    "get_check_in_for_day",
    "get_check_in_stats",
    "get_todays_check_in",
    "get_todays_check_ins",
    "get_user_check_ins",
    "perform_check_in",
    "write_check_in",
    # config
    "get_active_config",
    "update_company_config",
    # qr codes
    "get_active_qr_code",
    "checkin_url",
    "render_qr_svg",
    "rotate_qr_code",
    "validate_qr_code",
    # rewards
    "approve_redemption",
    "create_reward",
    "deactivate_reward",
    "fulfill_redemption",
    "list_redemptions",
    "list_rewards",
    "redeem_reward",
    "reject_redemption",
    "update_reward",
    # users
    "adjust_points",
    "get_leaderboard",
    "get_point_history",
    "get_user_state",
    "list_users",
    "register_user",
    "update_user_state",
    "set_user_status",
]
