# 默认参数（可由 CLI 覆盖）
ENROLL_TARGET = 10
HISTORY_CAPACITY = 20

# 训练样本统一尺寸 (w, h)
SAMPLE_SIZE = (100, 100)

# 级联检测器参数
CASCADE_NAME = "haarcascade_frontalface_default.xml"
SCALE_FACTOR = 1.1
MIN_NEIGHBORS = 5
CASCADE_FLAGS = 2  # cv2.CASCADE_SCALE_IMAGE
MIN_FACE_SIZE = (100, 100)

# 状态栏字体候选（只需覆盖 ASCII），按需扩展
FONT_LIST = [
    # macOS
    "/System/Library/Fonts/Helvetica.ttc",
    "/Library/Fonts/Arial.ttf",
    # Windows
    "C:\\Windows\\Fonts\\arial.ttf",
    "C:\\Windows\\Fonts\\segoeui.ttf",
    # Linux
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/opentype/noto/NotoSans-Regular.ttf",
]
