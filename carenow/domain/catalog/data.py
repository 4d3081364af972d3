"""Predefined service catalog installed by the seed operation"""

from .entities import Service

DEFAULT_SERVICES = [
    Service(
        id="elder_care_basic",
        name="Chăm sóc người cao tuổi",
        description="Hỗ trợ sinh hoạt hằng ngày, nhắc uống thuốc và trò chuyện cùng người cao tuổi.",
        category="elder_care",
        base_price=120000,
        duration_minutes=240,
        requirements=["Kinh nghiệm chăm sóc người cao tuổi", "Kiên nhẫn"],
        benefits=["Theo dõi sức khỏe cơ bản", "Hỗ trợ vệ sinh cá nhân"],
        sort_order=1,
    ),
    Service(
        id="child_care_basic",
        name="Trông trẻ",
        description="Trông và chơi cùng trẻ, hỗ trợ ăn uống và giấc ngủ.",
        category="child_care",
        base_price=100000,
        duration_minutes=180,
        requirements=["Kinh nghiệm trông trẻ"],
        benefits=["An toàn cho trẻ", "Hoạt động phát triển kỹ năng"],
        sort_order=2,
    ),
    Service(
        id="pet_care_basic",
        name="Chăm sóc thú cưng",
        description="Cho ăn, dắt đi dạo và vệ sinh cho thú cưng.",
        category="pet_care",
        base_price=80000,
        duration_minutes=60,
        requirements=["Yêu động vật"],
        benefits=["Thú cưng được vận động hằng ngày"],
        sort_order=3,
    ),
    Service(
        id="housekeeping_basic",
        name="Dọn dẹp nhà cửa",
        description="Lau dọn, giặt giũ và sắp xếp nhà cửa gọn gàng.",
        category="housekeeping",
        base_price=90000,
        duration_minutes=120,
        benefits=["Nhà cửa sạch sẽ", "Tiết kiệm thời gian"],
        sort_order=4,
    ),
    Service(
        id="medical_care_basic",
        name="Chăm sóc y tế tại nhà",
        description="Điều dưỡng tại nhà: thay băng, đo huyết áp, theo dõi sau điều trị.",
        category="medical_care",
        base_price=200000,
        duration_minutes=120,
        requirements=["Chứng chỉ điều dưỡng"],
        benefits=["Theo dõi chuyên môn", "Giảm tái nhập viện"],
        sort_order=5,
    ),
    Service(
        id="companion_care_basic",
        name="Bầu bạn và đồng hành",
        description="Trò chuyện, đi dạo và đồng hành trong các hoạt động hằng ngày.",
        category="companion_care",
        base_price=90000,
        duration_minutes=120,
        sort_order=6,
    ),
    Service(
        id="disability_care_basic",
        name="Hỗ trợ người khuyết tật",
        description="Hỗ trợ di chuyển, sinh hoạt và phục hồi chức năng cơ bản.",
        category="disability_care",
        base_price=150000,
        duration_minutes=240,
        requirements=["Kinh nghiệm hỗ trợ người khuyết tật"],
        sort_order=7,
    ),
    Service(
        id="postpartum_care_basic",
        name="Chăm sóc mẹ và bé sau sinh",
        description="Chăm sóc sản phụ và trẻ sơ sinh, hướng dẫn cho con bú.",
        category="postpartum_care",
        base_price=180000,
        duration_minutes=240,
        requirements=["Kinh nghiệm chăm sóc sau sinh"],
        benefits=["Mẹ phục hồi nhanh", "Bé được chăm sóc đúng cách"],
        sort_order=8,
    ),
]
